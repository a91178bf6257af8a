"""
Main API module for Shortlink Platform.

Responsibilities:
    - Expose REST endpoints for shortening URLs and redirecting short ids
    - Report per-URL stats and aggregate totals
    - Map store error kinds to HTTP status codes
    - Log every request (method, path, query, status, latency)
    - Export Prometheus counters at /metrics

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - The store is injected or chosen by `get_storage()` from the environment;
      routes only ever see the `BaseStore` contract.

Run:
    python main.py --port 8080 --db sqlite --db-path urls.db
    uvicorn main:create_app --factory
"""

import argparse
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, generate_latest
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware

from shortlink_platform.config import settings
from shortlink_platform.storage import BaseStore, InvalidURL, NotFound, StoreError, get_storage


class ShortenRequest(BaseModel):
    """Request payload for shortening a URL."""
    url: str


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request, including requests whose handler raised."""

    def __init__(self, app, logger: Optional[logging.Logger] = None):
        super().__init__(app)
        self.logger = logger or logging.getLogger("shortlink.http")

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            latency_ms = (time.perf_counter() - start) * 1000
            client = request.client.host if request.client else "unknown"
            self.logger.info(
                "Request: %s %s query=%r status=%d ip=%s user-agent=%r latency=%.2fms",
                request.method,
                request.url.path,
                request.url.query,
                response.status_code if response is not None else 500,
                client,
                request.headers.get("user-agent", ""),
                latency_ms,
            )


def create_app(store: Optional[BaseStore] = None) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        store: Backend to serve from. When omitted, `get_storage()` picks one
            from SHORTLINK_STORAGE_BACKEND.

    Returns:
        FastAPI: A configured application. The store is closed on shutdown.
    """
    log = logging.getLogger("shortlink")
    if not logging.getLogger().handlers:
        logging.basicConfig(level=settings.LOG_LEVEL)

    if store is None:
        store = get_storage()
    log.info("Shortlink storage backend: %s", type(store).__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        store.close()
        log.info("Store closed")

    app = FastAPI(
        title="Shortlink Platform",
        description="URL shortener with hit counting over in-memory or SQLite storage",
        lifespan=lifespan,
    )
    app.state.store = store
    app.add_middleware(RequestLoggingMiddleware)

    # Per-app registry so several apps (tests) never share counters.
    registry = CollectorRegistry()
    shorten_requests = Counter(
        "url_shortener_shorten_requests", "Total number of URL shortening requests",
        registry=registry,
    )
    redirects = Counter(
        "url_shortener_redirects", "Total number of redirects", ["url_id"],
        registry=registry,
    )
    errors = Counter(
        "url_shortener_errors", "Total number of error responses",
        registry=registry,
    )
    app.state.metrics_registry = registry

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        if request.url.path == "/api/shorten":
            shorten_requests.inc()
        errors.inc()
        return JSONResponse(status_code=400, content={"detail": "Invalid request"})

    # ----------------------------------------------------------------
    # Routes
    # ----------------------------------------------------------------
    @app.get("/api/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/metrics")
    def prometheus_metrics() -> Response:
        return Response(generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    @app.post("/api/shorten")
    def shorten(req: ShortenRequest) -> Dict[str, Any]:
        """
        Create a short id for the given URL.

        Raises:
            HTTPException: 400 for an invalid URL, 500 for storage failures.
        """
        shorten_requests.inc()
        try:
            record = store.create(req.url)
        except InvalidURL:
            errors.inc()
            raise HTTPException(status_code=400, detail="Invalid URL")
        except StoreError:
            errors.inc()
            log.exception("create failed for %r", req.url)
            raise HTTPException(status_code=500, detail="Failed to create shortened URL")
        return record.to_dict()

    @app.get("/api/stats")
    def stats() -> Dict[str, Any]:
        try:
            records = store.get_stats()
        except StoreError:
            errors.inc()
            log.exception("stats query failed")
            raise HTTPException(status_code=500, detail="Failed to get stats")
        return {"urls": [record.to_dict() for record in records]}

    @app.get("/api/metrics")
    def metrics() -> Dict[str, int]:
        """Aggregate totals: number of short URLs and hits across all of them."""
        try:
            total_urls = store.get_total_count()
            total_hits = store.get_total_hits()
        except StoreError:
            errors.inc()
            log.exception("metrics query failed")
            raise HTTPException(status_code=500, detail="Failed to get metrics")
        return {"total_urls": total_urls, "total_hits": total_hits}

    # Catch-all last so it does not shadow the routes above.
    @app.get("/{record_id}")
    def redirect(record_id: str) -> RedirectResponse:
        """
        Resolve a short id, count the hit and redirect to the original URL.

        Raises:
            HTTPException: 404 if the id is unknown, 500 for storage failures.
        """
        try:
            record = store.get(record_id)
        except NotFound:
            errors.inc()
            raise HTTPException(status_code=404, detail="URL not found")
        except StoreError:
            errors.inc()
            log.exception("lookup failed for %r", record_id)
            raise HTTPException(status_code=500, detail="Failed to get URL")
        redirects.labels(url_id=record_id).inc()
        return RedirectResponse(url=record.original, status_code=302)

    return app


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Run the Shortlink Platform API")
    parser.add_argument("--port", type=int, default=settings.PORT, help="Port to listen on")
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind")
    parser.add_argument("--db", default=settings.STORAGE_BACKEND, choices=["memory", "sqlite"],
                        help="Database type (memory or sqlite)")
    parser.add_argument("--db-path", default=settings.DB_PATH,
                        help="Path to SQLite database (only for sqlite)")
    args = parser.parse_args(argv)

    kwargs = {"path": args.db_path} if args.db == "sqlite" else {}
    app = create_app(get_storage(args.db, **kwargs))
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
