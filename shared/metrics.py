"""
Shared metrics configuration for the Venue service.
"""

from prometheus_client import Counter, Histogram, Info, CollectorRegistry, REGISTRY
from typing import Dict, Any, Optional
import threading


class MetricsCollector:
    """Centralized metrics collector for services."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else REGISTRY
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        self._metrics["service_info"] = Info(
            "service",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        self._metrics["health_check_total"] = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        # Access control
        self._metrics["identity_lookups_total"] = Counter(
            "identity_lookups_total",
            "Identity service lookups by operation and outcome",
            ["operation", "outcome"],
            registry=self.registry
        )

        self._metrics["identity_lookup_duration_seconds"] = Histogram(
            "identity_lookup_duration_seconds",
            "Identity service lookup duration in seconds",
            ["operation"],
            registry=self.registry
        )

        self._metrics["access_decisions_total"] = Counter(
            "access_decisions_total",
            "Access resolver decisions by path and outcome",
            ["path", "outcome"],
            registry=self.registry
        )

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def record_identity_lookup(self, operation: str, outcome: str):
        """Record the outcome of one identity service call."""
        self._metrics["identity_lookups_total"].labels(operation=operation, outcome=outcome).inc()

    def observe_identity_latency(self, operation: str, duration: float):
        """Record identity service round-trip time."""
        self._metrics["identity_lookup_duration_seconds"].labels(operation=operation).observe(duration)

    def record_access_decision(self, path: str, outcome: str):
        """Record an access resolver decision."""
        self._metrics["access_decisions_total"].labels(path=path, outcome=outcome).inc()


_collectors: Dict[str, MetricsCollector] = {}
_collectors_lock = threading.Lock()


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get the metrics collector for a service.

    Collectors on the default registry are shared per service name since
    prometheus_client refuses to register the same metric twice.
    """
    if registry is not None:
        return MetricsCollector(service_name, registry)

    with _collectors_lock:
        collector = _collectors.get(service_name)
        if collector is None:
            collector = MetricsCollector(service_name)
            _collectors[service_name] = collector
        return collector
