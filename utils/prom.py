"""Prometheus metric definitions for the cleanup job.

Metrics live on a dedicated registry so a run can push exactly its own values
to a Pushgateway (``PUSHGATEWAY_URL``). A cron job has no /metrics endpoint to
scrape, so pushing at the end of a run is the only export path.
"""
from __future__ import annotations

import logging

from prometheus_client import CollectorRegistry, Counter, Gauge, push_to_gateway

import config

log = logging.getLogger("prom")

registry = CollectorRegistry()

rows_deleted_total = Counter(
    "cleanup_submissions_deleted_total",
    "Submission rows deleted",
    registry=registry,
)

objects_deleted_total = Counter(
    "cleanup_objects_deleted_total",
    "Submission originals deleted from object storage",
    registry=registry,
)

batches_total = Counter(
    "cleanup_batches_total",
    "Pages processed",
    ["result"],
    registry=registry,
)

premium_lookups_total = Counter(
    "cleanup_premium_lookups_total",
    "Premium function calls issued",
    registry=registry,
)

run_duration_seconds = Gauge(
    "cleanup_run_duration_seconds",
    "Wall time of the last run",
    registry=registry,
)

last_success_unixtime = Gauge(
    "cleanup_last_success_unixtime",
    "Unix time of the last run that reached DONE",
    registry=registry,
)


def push_metrics() -> bool:
    """Push the registry if a gateway is configured. Returns True when pushed."""
    url = config.PUSHGATEWAY_URL
    if not url:
        return False
    try:
        push_to_gateway(url, job=config.PUSHGATEWAY_JOB, registry=registry)
    except (OSError, ValueError):
        log.exception("Pushgateway push to %s failed", url)
        return False
    return True
