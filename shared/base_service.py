"""
Base service class for the Products Service.
"""

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from prometheus_client import CONTENT_TYPE_LATEST
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Dict, Optional
import time

from shared.config import ServiceConfig, get_config
from shared.logging import configure_logging, get_logger, set_request_id, clear_context
from shared.metrics import MetricsCollector, get_metrics_collector
from shared.errors import ServiceLayerException

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

REQUEST_ID_HEADER = "X-Request-ID"


class BaseService:
    """Base service class with common functionality."""

    def __init__(
        self,
        service_name: str,
        config: Optional[ServiceConfig] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.service_name = service_name
        self.config = config or get_config(service_name)
        self.port = self.config.port

        configure_logging(service_name, self.config.log_level)
        self.logger = get_logger(f"{service_name}.service")
        self.metrics = metrics or get_metrics_collector(service_name)

        self.app = self._create_app()

        if self.config.enable_tracing:
            from shared.tracing import configure_tracing
            configure_tracing(
                self.app,
                service_name,
                self.config.otel_exporter,
                self.config.enable_console_tracing
            )

        self._setup_middleware()
        self._setup_routes()
        self._setup_exception_handlers()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""
        return FastAPI(
            title=f"{self.service_name.title()} Service",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url="/redoc" if self.config.env == "local" else None,
            lifespan=self._lifespan,
        )

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        self._start_time = time.time()
        await self.start()
        try:
            yield
        finally:
            await self.stop()

    def _setup_middleware(self):
        """Set up middleware."""

        # Request timing middleware
        @self.app.middleware("http")
        async def add_request_timing(request: Request, call_next):
            start_time = time.time()
            request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
            request.state.request_id = request_id

            try:
                response = await call_next(request)
            finally:
                clear_context()

            duration = time.time() - start_time
            route = request.scope.get("route")
            endpoint = getattr(route, "path", request.url.path)

            self.metrics.record_http_request(
                method=request.method,
                endpoint=endpoint,
                status_code=response.status_code,
                duration=duration
            )

            self.logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
                request_id=request_id
            )

            response.headers[REQUEST_ID_HEADER] = request_id
            return response

        # Registered last so it wraps everything else; preflights never reach routing.
        @self.app.middleware("http")
        async def allow_cross_origin(request: Request, call_next):
            if request.method == "OPTIONS":
                response = Response(status_code=204)
            else:
                response = await call_next(request)
            response.headers.update(CORS_HEADERS)
            return response

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get("/health", response_class=PlainTextResponse)
        async def health_check():
            """Liveness probe."""
            return "ok"

        @self.app.get("/ready")
        async def readiness_check():
            """Readiness probe reporting each dependency."""
            dependencies = await self._check_dependencies()
            ready = all(status in ("ok", "disabled", "degraded") for status in dependencies.values())
            self.metrics.record_health_check("ok" if ready else "error")

            return JSONResponse(
                status_code=200 if ready else 503,
                content={
                    "service": self.service_name,
                    "status": "ok" if ready else "error",
                    "uptime_seconds": self._get_uptime(),
                    "dependencies": dependencies,
                    "version": "1.0.0"
                }
            )

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            return Response(
                content=self.metrics.render(),
                media_type=CONTENT_TYPE_LATEST
            )

    def _setup_exception_handlers(self):
        """Map every failure to a plain-text body with a matching status."""

        @self.app.exception_handler(ServiceLayerException)
        async def service_exception_handler(request: Request, exc: ServiceLayerException):
            log = self.logger.error if exc.status_code >= 500 else self.logger.info
            log(
                "Request failed",
                path=request.url.path,
                **exc.to_response().model_dump()
            )
            self.metrics.record_error(exc.code)
            return PlainTextResponse(exc.public_message(), status_code=exc.status_code)

        @self.app.exception_handler(RequestValidationError)
        async def request_validation_handler(request: Request, exc: RequestValidationError):
            self.logger.info("Rejected request body", path=request.url.path, errors=str(exc.errors()))
            self.metrics.record_error("VALIDATION_ERROR")
            return PlainTextResponse("bad json", status_code=400)

        @self.app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(request: Request, exc: StarletteHTTPException):
            if exc.status_code == 405:
                message = "method not allowed"
            else:
                message = exc.detail if isinstance(exc.detail, str) else HTTPStatus(exc.status_code).phrase
            return PlainTextResponse(message, status_code=exc.status_code, headers=exc.headers)

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            self.logger.error("Unhandled exception", error=str(exc), exc_info=True)
            self.metrics.record_error("INTERNAL_ERROR")
            # Rendered outside the middleware stack, so headers are added here.
            request_id = getattr(request.state, "request_id", None) or request.headers.get(REQUEST_ID_HEADER)
            headers = dict(CORS_HEADERS)
            if request_id:
                headers[REQUEST_ID_HEADER] = request_id
            return PlainTextResponse("internal server error", status_code=500, headers=headers)

    async def start(self):
        """Start service components. Override in subclasses."""

    async def stop(self):
        """Stop service components. Override in subclasses."""

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check service dependencies. Override in subclasses."""
        return {}

    def _get_uptime(self) -> float:
        """Get service uptime in seconds."""
        if not hasattr(self, '_start_time'):
            self._start_time = time.time()
        return time.time() - self._start_time

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )
