"""Custom Prometheus metrics for the Try-On Gateway.

These metrics are exposed at /metrics endpoint and should be scraped by Prometheus.
Alert rules should be configured for:
- gate_rejections_total (callers hammering the pipeline)
- inference_attempts_total{outcome="failure"} (remote instability)
- session_builds_total (sessions churned by failures)
"""

from prometheus_client import Counter, Gauge, Histogram

# === Request Gate Metrics ===

gate_rejections_total = Counter(
    "gate_rejections_total",
    "Submissions rejected by the request gate",
    ["reason"],
)
"""
Rejected submissions by reason.

Labels:
- reason: duplicate_in_flight, resubmission_too_soon
"""

gate_pending_submissions = Gauge(
    "gate_pending_submissions",
    "Submissions currently tracked as in flight",
)

# === Inference Metrics ===

inference_attempts_total = Counter(
    "inference_attempts_total",
    "Remote inference attempts by outcome",
    ["outcome"],
)
"""
Inference attempts by outcome.

Labels:
- outcome: success, failure, exhausted, unusable_result

Alert thresholds:
- WARN: failure rate > 20% of attempts
- CRITICAL: any sustained rate of exhausted
"""

inference_latency_seconds = Histogram(
    "inference_latency_seconds",
    "End-to-end latency of InferenceClient.submit in seconds",
    ["success"],
    buckets=[1.0, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0, 240.0],
)

session_builds_total = Counter(
    "session_builds_total",
    "Remote session constructions by outcome",
    ["outcome"],
)
"""
Session constructions.

Labels:
- outcome: success, timeout, error

A high success rate relative to requests means sessions are being
invalidated by failures far more often than they expire.
"""

# === Download Metrics ===

downloads_total = Counter(
    "downloads_total",
    "URL downloads by outcome",
    ["outcome"],
)
"""
Downloads of result or source images.

Labels:
- outcome: success, retry, exhausted
"""
