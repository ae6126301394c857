"""
Side-effect dispatcher.

Runs notification and spreadsheet work after a registration has committed.
Each effect becomes its own asyncio task, so:

  - the caller of submit never awaits them and cannot be failed by them;
  - one effect failing (or hanging) has no influence on the others;
  - failures are logged with enough context to replay by hand, then dropped.

Optional artifacts (QR image, calendar file) are rendered inside the effect that
needs them. A renderer failure drops only that attachment; the notice is still
sent without it.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

from app.core.logging import get_logger
from app.core.metrics import record_artifact_failure, record_side_effect
from app.models.enums import AdmissionOutcome
from app.schemas.registration import RegistrationResult
from app.services.interfaces.notifications import CalendarRenderer, CheckInArtifactRenderer, Mailer, SheetSync

logger = get_logger(__name__)

T = TypeVar("T")


class SideEffectDispatcher:
    def __init__(
        self,
        mailer: Mailer,
        sheets: SheetSync,
        qr_renderer: CheckInArtifactRenderer,
        calendar_renderer: CalendarRenderer,
    ):
        self.mailer = mailer
        self.sheets = sheets
        self.qr_renderer = qr_renderer
        self.calendar_renderer = calendar_renderer
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch_registration(self, result: RegistrationResult) -> list[asyncio.Task]:
        """Schedule every post-commit effect of a submission. Returns immediately."""
        context = {
            "registrant_id": str(result.registrant.id),
            "registration_id": result.registrant.registration_id,
            "event_id": result.event.id,
        }
        tasks = []

        if result.outcome == AdmissionOutcome.CONFIRMED:
            tasks.append(self._schedule("confirmation_email", lambda: self._send_confirmation(result), context))
            if result.companion is not None:
                tasks.append(
                    self._schedule("companion_confirmation_email", lambda: self._send_companion_confirmation(result), context)
                )
        else:
            tasks.append(
                self._schedule(
                    "waitlist_email",
                    lambda: self.mailer.send_waitlist_notice(result.event, result.registrant, result.companion),
                    context,
                )
            )

        tasks.append(
            self._schedule(
                "sheet_sync",
                lambda: self.sheets.sync_registrant(result.registrant, result.companion, result.event.name),
                context,
            )
        )
        return tasks

    def dispatch_check_in(self, registration_id: str) -> asyncio.Task:
        return self._schedule(
            "sheet_check_in",
            lambda: self.sheets.update_check_in(registration_id),
            {"registration_id": registration_id},
        )

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for in-flight effects (shutdown, tests). Never raises for effect failures."""
        if not self._tasks:
            return
        done, not_done = await asyncio.wait(set(self._tasks), timeout=timeout)
        if not_done:
            logger.warning("side_effects_abandoned", count=len(not_done))

    def _schedule(self, effect: str, start: Callable[[], Awaitable[Any]], context: dict) -> asyncio.Task:
        task = asyncio.create_task(self._run_isolated(effect, start, context), name=f"side_effect:{effect}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_isolated(self, effect: str, start: Callable[[], Awaitable[Any]], context: dict) -> bool:
        try:
            await start()
        except asyncio.CancelledError:
            logger.warning("side_effect_cancelled", effect=effect, **context)
            raise
        except Exception:
            record_side_effect(effect, success=False)
            logger.exception("side_effect_failed", effect=effect, **context)
            return False

        record_side_effect(effect, success=True)
        logger.info("side_effect_completed", effect=effect, **context)
        return True

    async def _render_optional(self, artifact: str, render: Callable[..., T], *args: Any) -> Optional[T]:
        try:
            return await asyncio.to_thread(render, *args)
        except Exception:
            record_artifact_failure(artifact)
            logger.warning("artifact_render_failed", artifact=artifact, exc_info=True)
            return None

    async def _send_confirmation(self, result: RegistrationResult) -> None:
        registrant = result.registrant
        check_in_image = await self._render_optional("check_in_image", self.qr_renderer.render, registrant.qr_code)
        calendar_file = await self._render_optional(
            "calendar_file",
            self.calendar_renderer.render,
            result.event,
            registrant.name,
            registrant.email,
            registrant.registration_id,
        )
        await self.mailer.send_confirmation(
            result.event, registrant, result.companion, check_in_image, calendar_file
        )

    async def _send_companion_confirmation(self, result: RegistrationResult) -> None:
        companion = result.companion
        check_in_image = await self._render_optional("check_in_image", self.qr_renderer.render, companion.qr_code)
        calendar_file = await self._render_optional(
            "calendar_file",
            self.calendar_renderer.render,
            result.event,
            companion.name,
            companion.email,
            companion.registration_id,
        )
        await self.mailer.send_companion_confirmation(
            result.event, companion, result.registrant.name, check_in_image, calendar_file
        )
