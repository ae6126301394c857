"""
Collaborator interfaces the registration core depends on.
Implementations live in app.infrastructure and are wired in collaborator_factory.
"""

from .notifications import CalendarRenderer, CheckInArtifactRenderer, Mailer, SheetSync

__all__ = ['CalendarRenderer', 'CheckInArtifactRenderer', 'Mailer', 'SheetSync']
