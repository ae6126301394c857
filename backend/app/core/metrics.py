"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Registration metrics
registration_attempts = Counter(
    'registration_attempts_total',
    'Total registration submissions',
    ['outcome']  # confirmed, waitlisted, rejected, error
)

registration_latency = Histogram(
    'registration_latency_seconds',
    'Registration submission latency (unit of work only)',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

registration_retries = Counter(
    'registration_retry_attempts_total',
    'Unit-of-work retries caused by identifier collisions'
)

invitation_rejections = Counter(
    'invitation_rejections_total',
    'Invitation redemptions refused',
    ['reason']  # not_found, already_used, expired
)

# Capacity ledger metrics
admission_decisions = Counter(
    'admission_decisions_total',
    'Capacity ledger admission decisions',
    ['result']  # confirmed, waitlisted
)

capacity_releases = Counter(
    'capacity_released_seats_total',
    'Seats returned to events by cancellation'
)

capacity_invariant_violations = Counter(
    'capacity_invariant_violations_total',
    'Capacity counter updates that would have left 0..capacity'
)

# Side effects
side_effects = Counter(
    'side_effects_total',
    'Post-commit side effect executions',
    ['effect', 'result']  # result: success, failed
)

artifact_render_failures = Counter(
    'artifact_render_failures_total',
    'Optional notification artifacts that failed to render',
    ['artifact']  # check_in_image, calendar_file
)

check_ins = Counter(
    'check_ins_total',
    'Successful QR check-ins',
    ['kind']  # registrant, companion
)

# Throttling
rate_limited_requests = Counter(
    'rate_limited_requests_total',
    'Submissions refused by the rate limiter'
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)

redis_circuit_breaker_open = Gauge(
    'redis_circuit_breaker_open',
    'Redis circuit breaker state (1=open, 0=closed)'
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


# Convenience functions for instrumentation
def record_registration(outcome: str):
    """Record registration attempt. Outcome: confirmed, waitlisted, rejected, error"""
    registration_attempts.labels(outcome=outcome).inc()

def record_admission(confirmed: bool):
    """Record capacity ledger decision."""
    result = "confirmed" if confirmed else "waitlisted"
    admission_decisions.labels(result=result).inc()

def record_invitation_rejection(reason: str):
    invitation_rejections.labels(reason=reason).inc()

def record_side_effect(effect: str, success: bool):
    result = "success" if success else "failed"
    side_effects.labels(effect=effect, result=result).inc()

def record_artifact_failure(artifact: str):
    artifact_render_failures.labels(artifact=artifact).inc()
