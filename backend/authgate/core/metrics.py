"""
Prometheus Metrics for the authorization gate

Counters and histograms for outbound GitHub traffic and for the decisions the
gate takes. The prepare step is short lived, so the metrics are mainly useful
when authgate is embedded in a longer running worker that exposes the default
registry.
"""

import logging
import time
from contextlib import contextmanager
from importlib.metadata import version as get_version

from prometheus_client import Counter, Histogram, Info

from authgate.core.config import settings

logger = logging.getLogger(__name__)

# =============================================================================
# Application Info Metrics
# =============================================================================

try:
    APP_VERSION = get_version(settings.PROJECT_NAME)
except Exception:
    APP_VERSION = "unknown"

app_info = Info("authgate_app", "Application information")
app_info.info(
    {
        "version": APP_VERSION,
        "app_name": settings.PROJECT_NAME,
    }
)

# =============================================================================
# External API Metrics
# =============================================================================

external_api_requests_total = Counter(
    "external_api_requests_total",
    "Total external API requests by service",
    ["service"],
)

external_api_errors_total = Counter(
    "external_api_errors_total",
    "Total external API errors by service",
    ["service"],
)

external_api_duration_seconds = Histogram(
    "external_api_duration_seconds",
    "External API request duration in seconds",
    ["service"],
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
)

external_api_rate_limit_hits_total = Counter(
    "external_api_rate_limit_hits_total",
    "Total rate limit hits by service",
    ["service"],
)

# =============================================================================
# Authorization Metrics
# =============================================================================

authorization_decisions_total = Counter(
    "authorization_decisions_total",
    "Write-access decisions by outcome and reason",
    ["outcome", "reason"],
)

write_probe_duration_seconds = Histogram(
    "write_probe_duration_seconds",
    "Duration of the label create/delete write probe in seconds",
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0),
)

write_probe_cleanup_failures_total = Counter(
    "write_probe_cleanup_failures_total",
    "Probe labels that could not be deleted after a probe",
)


@contextmanager
def track_write_probe():
    """Context manager timing a write probe, successful or not."""
    start_time = time.time()
    try:
        yield
    finally:
        write_probe_duration_seconds.observe(time.time() - start_time)
