"""
Prometheus metrics for loan admission.
"""

from prometheus_client import Counter, Gauge, Histogram

admissions_total = Counter(
    "loanguard_admissions_total",
    "Loan admission attempts by outcome",
    ["outcome"],
)

admission_seconds = Histogram(
    "loanguard_admission_seconds",
    "Time spent in the admission pipeline",
)

concentration_share = Gauge(
    "loanguard_last_concentration_share",
    "Share computed for the last risk-checked admission, by jurisdiction",
    ["jurisdiction"],
)

limit_cache_refreshes_total = Counter(
    "loanguard_limit_cache_refreshes_total",
    "Limit snapshot reloads from the configuration store",
)


def record_admission(outcome: str, duration: float):
    """Record one admission attempt."""
    admissions_total.labels(outcome=outcome).inc()
    admission_seconds.observe(duration)
