"""
Prometheus metrics for order finalization.

In multi-process mode (Gunicorn with PROMETHEUS_MULTIPROC_DIR set) the
metrics are written to the shared directory and collected by the exporter.
"""
from prometheus_client import Counter, Histogram, CollectorRegistry, REGISTRY
from prometheus_client import multiprocess
import os

# Check if running in multi-process mode (Gunicorn)
MULTIPROCESS_MODE = os.environ.get('PROMETHEUS_MULTIPROC_DIR') is not None

# Use multiprocess registry in production with Gunicorn
if MULTIPROCESS_MODE:
    registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(registry)
else:
    registry = REGISTRY

orders_finalized_total = Counter(
    'orders_finalized_total',
    'Orders moved from PENDING to FINALIZED',
    registry=registry if not MULTIPROCESS_MODE else None
)

order_finalize_failures_total = Counter(
    'order_finalize_failures_total',
    'Finalization attempts that were rejected or rolled back',
    ['reason'],
    registry=registry if not MULTIPROCESS_MODE else None
)

order_finalize_duration_seconds = Histogram(
    'order_finalize_duration_seconds',
    'Time spent inside the finalization transaction',
    registry=registry if not MULTIPROCESS_MODE else None,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

stock_units_sold_total = Counter(
    'stock_units_sold_total',
    'Units deducted from stock by finalized orders',
    registry=registry if not MULTIPROCESS_MODE else None
)
