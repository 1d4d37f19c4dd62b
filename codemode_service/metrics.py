"""Prometheus metrics for Codemode Service"""

import time
from prometheus_client import Counter, Histogram, Info

# Pipeline metrics
REQUESTS_TOTAL = Counter(
    "codemode_requests_total",
    "Total number of run requests",
    ["outcome"],  # success/check_failed/runtime_failed/bad_request/...
)

COMPILE_DURATION = Histogram(
    "codemode_compile_duration_seconds",
    "Time spent type-checking and lowering",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)

SANDBOX_DURATION = Histogram(
    "codemode_sandbox_duration_seconds",
    "Time spent loading and invoking a sandbox",
    ["status"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# Service metrics
SERVICE_INFO = Info("codemode_service_info", "Codemode service information")

# Error metrics
ERROR_REQUESTS_TOTAL = Counter(
    "codemode_errors_total",
    "Total number of errors",
    ["error_type", "component"],  # component: compiler/sandbox/service
)


class MetricsCollector:
    """Collects and manages metrics for the codemode service"""

    def __init__(self, service_name: str = "codemode-service", version: str = "0.1.0"):
        self.service_name = service_name
        self.version = version

        SERVICE_INFO.info({"service_name": service_name, "version": version})

    def record_request(self, outcome: str):
        REQUESTS_TOTAL.labels(outcome=outcome).inc()

    def record_compile(self, duration: float):
        COMPILE_DURATION.observe(duration)

    def record_sandbox(self, status: int, duration: float):
        SANDBOX_DURATION.labels(status=str(status)).observe(duration)

    def record_error(self, error_type: str, component: str):
        """Record error metrics"""
        ERROR_REQUESTS_TOTAL.labels(error_type=error_type, component=component).inc()


# Global metrics instance
metrics = MetricsCollector()


class TimedOperation:
    """Context manager for timing operations"""

    def __init__(self, operation_name: str, component: str = "service"):
        self.operation_name = operation_name
        self.component = component
        self.start_time = None
        self.duration = None

    def __enter__(self):
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.time() - self.start_time

        if exc_type is not None:
            metrics.record_error(exc_type.__name__, self.component)

        return False  # Don't suppress exceptions
