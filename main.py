import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import make_asgi_app
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from codemode_service import __version__
from codemode_service.api import health, run
from codemode_service.compiler import (
    CompilerFrontendAdapter,
    NodeTypeScriptFrontend,
    prepare_compiler_environment,
)
from codemode_service.config import Settings
from codemode_service.orchestrator import RequestOrchestrator
from codemode_service.sandbox import (
    DenoSandboxLoader,
    EntryModuleSynthesizer,
    RemoteSandboxLoader,
    SandboxDispatcher,
    SandboxLoader,
)

# OpenTelemetry (minimal) instrumentation
import os
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.resources import SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Global instances
settings = Settings()


def setup_tracing(app: FastAPI):
    """Initialize OTLP exporter and instrument FastAPI + httpx."""
    if not settings.enable_tracing:
        return
    try:
        service_name = os.getenv("OTEL_SERVICE_NAME", settings.service_name)
        endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "localhost:4317")

        provider = TracerProvider(
            resource=Resource.create({SERVICE_NAME: service_name})
        )
        exporter = OTLPSpanExporter(endpoint=endpoint, insecure=True)
        provider.add_span_processor(BatchSpanProcessor(exporter))
        trace.set_tracer_provider(provider)

        FastAPIInstrumentor.instrument_app(app)
        HTTPXClientInstrumentor().instrument()
        logger.info(
            "OpenTelemetry tracing initialized",
            extra={"service": service_name, "endpoint": endpoint},
        )
    except Exception as e:
        logger.warning(f"Failed to initialize OpenTelemetry: {e}")


def build_loader(settings: Settings) -> SandboxLoader:
    """Pick the sandbox runtime configured for this process"""
    if settings.uses_remote_sandbox:
        if not settings.remote_sandbox_url:
            raise ValueError("REMOTE_SANDBOX_URL is required when SANDBOX_BACKEND=remote")
        return RemoteSandboxLoader(
            settings.remote_sandbox_url,
            timeout_seconds=settings.sandbox_timeout_seconds,
            compatibility_date=settings.compatibility_date,
        )
    return DenoSandboxLoader(
        deno_binary=settings.deno_binary,
        timeout_seconds=settings.sandbox_timeout_seconds,
        memory_limit_mb=settings.sandbox_memory_limit_mb,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle"""
    logger.info("Starting Codemode Service")

    # Must run before the adapter exists
    environment = prepare_compiler_environment(settings)

    frontend = NodeTypeScriptFrontend(
        environment, timeout_seconds=settings.compile_timeout_seconds
    )
    loader = build_loader(settings)

    app.state.settings = settings
    app.state.frontend = frontend
    app.state.loader = loader
    app.state.orchestrator = RequestOrchestrator(
        adapter=CompilerFrontendAdapter(frontend),
        synthesizer=EntryModuleSynthesizer(),
        dispatcher=SandboxDispatcher(loader),
    )
    logger.info(
        "Pipeline ready",
        extra={"frontend": frontend.name, "sandbox": loader.name},
    )

    yield

    logger.info("Shutting down Codemode Service")
    await loader.close()


# Create FastAPI app
app = FastAPI(
    title="Codemode Service",
    description="Type-check TypeScript and run it in an isolated sandbox",
    version=__version__,
    lifespan=lifespan,
)

# Initialize tracing after app creation
setup_tracing(app)

# CORS preflight on every path, and the envelope for methods the router does not know
app.middleware("http")(run.answer_preflight)
app.add_exception_handler(StarletteHTTPException, run.not_allowed_handler)

# Include routers
app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(run.router, tags=["run"])

# Mount Prometheus metrics
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info",
    )
