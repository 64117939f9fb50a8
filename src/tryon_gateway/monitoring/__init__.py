"""Monitoring and metrics instrumentation for the Try-On Gateway.

Exports custom Prometheus metrics for operational monitoring and alerting.
"""

from tryon_gateway.monitoring.metrics import (
    downloads_total,
    gate_pending_submissions,
    gate_rejections_total,
    inference_attempts_total,
    inference_latency_seconds,
    session_builds_total,
)

__all__ = [
    "gate_rejections_total",
    "gate_pending_submissions",
    "inference_attempts_total",
    "inference_latency_seconds",
    "session_builds_total",
    "downloads_total",
]
