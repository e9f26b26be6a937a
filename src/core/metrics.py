"""
Prometheus Metrics - Application Monitoring

Exposes metrics at /metrics endpoint for Prometheus scraping.
"""
import time

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, Info, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response as StarletteResponse

from src.core.config import settings

# === Application Info ===
APP_INFO = Info("agridrone_app", "AgriDrone application info")
APP_INFO.info({
    "version": settings.app_version,
    "environment": settings.environment,
})

# === Request Metrics ===
# Label for requests no route matched (404s on arbitrary paths)
UNMATCHED_ENDPOINT = "unmatched"

REQUEST_COUNT = Counter(
    "agridrone_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

REQUEST_LATENCY = Histogram(
    "agridrone_http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# === Business Metrics ===
QUOTES_COMPUTED = Counter(
    "agridrone_quotes_computed_total",
    "Total quote estimates computed",
    ["service_type"],
)

OFFERS_SUBMITTED = Counter(
    "agridrone_offers_submitted_total",
    "Total offers submitted on jobs",
    ["service_type"],
)

OFFERS_ACCEPTED = Counter(
    "agridrone_offers_accepted_total",
    "Total offers accepted by buyers",
    ["service_type"],
)

ORDERS_CREATED = Counter(
    "agridrone_orders_created_total",
    "Total e-commerce orders created at checkout",
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect request metrics."""

    async def dispatch(self, request: Request, call_next) -> StarletteResponse:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method

        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        # Route template, not the raw path, keeps label cardinality bounded
        route = request.scope.get("route")
        endpoint = getattr(route, "path", UNMATCHED_ENDPOINT)

        REQUEST_COUNT.labels(
            method=method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()

        REQUEST_LATENCY.labels(
            method=method,
            endpoint=endpoint,
        ).observe(duration)

        return response


# === Metrics Router ===
router = APIRouter(tags=["health"])


@router.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


# === Helper Functions ===

def record_quote(service_type: str) -> None:
    """Record a computed quote."""
    QUOTES_COMPUTED.labels(service_type=service_type).inc()


def record_offer_submitted(service_type: str) -> None:
    """Record an offer submission."""
    OFFERS_SUBMITTED.labels(service_type=service_type).inc()


def record_offer_accepted(service_type: str) -> None:
    """Record an accepted offer."""
    OFFERS_ACCEPTED.labels(service_type=service_type).inc()


def record_orders_created(count: int = 1) -> None:
    """Record orders created at checkout."""
    ORDERS_CREATED.inc(count)
