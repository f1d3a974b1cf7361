"""
Prometheus metrics collection for the PDF pipeline

Counts records and batches per stage, times stage runs, and tracks how
extraction rules fare against incoming text.
"""
import os
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
)


# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# PIPELINE METRICS
# =======================

# Records processed counter
records_processed_total = Counter(
    name="pipeline_records_processed_total",
    documentation="Total number of records processed by a pipeline stage",
    labelnames=["stage", "status"],  # status: success, error
    registry=REGISTRY,
)

# Stage run duration histogram
stage_duration_seconds = Histogram(
    name="pipeline_stage_duration_seconds",
    documentation="Time spent running one stage over a batch in seconds",
    labelnames=["stage"],
    buckets=[0.01, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
    registry=REGISTRY,
)

# Batch size
batch_size = Histogram(
    name="pipeline_batch_size_records",
    documentation="Number of records in each batch handed to a stage",
    labelnames=["stage"],
    buckets=[1, 5, 10, 50, 100, 500, 1000],
    registry=REGISTRY,
)

# Batches processed counter
batches_processed_total = Counter(
    name="pipeline_batches_processed_total",
    documentation="Total number of batches run through a stage",
    labelnames=["stage", "status"],  # status: success, aborted
    registry=REGISTRY,
)

# =======================
# EXTRACTION METRICS
# =======================

extraction_rules_total = Counter(
    name="pipeline_extraction_rules_total",
    documentation="Extraction rule applications by outcome",
    labelnames=["outcome"],  # outcome: matched, unmatched, invalid
    registry=REGISTRY,
)

# =======================
# ERROR METRICS
# =======================

errors_total = Counter(
    name="pipeline_errors_total",
    documentation="Total number of record-level errors",
    labelnames=["stage", "error_type"],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def start_metrics_server(port: Optional[int] = None) -> None:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    # Imported lazily so importing this module never binds a port
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)


class track_duration:
    """
    Context manager for tracking operation duration

    Usage:
        with track_duration(stage_duration_seconds, stage="summarize"):
            # do work
            pass
    """

    def __init__(self, histogram: Histogram, **labels):
        self.histogram = histogram
        self.labels = labels
        self.timer = None

    def __enter__(self):
        self.timer = self.histogram.labels(**self.labels).time()
        self.timer.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.timer.__exit__(exc_type, exc_val, exc_tb)
        return False


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    counter.labels(**labels).inc(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    """
    Observe a value in a histogram metric

    Args:
        histogram: Prometheus Histogram metric
        value: Value to observe
        **labels: Label values for the metric
    """
    histogram.labels(**labels).observe(value)
