"""Main FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from identity.presentation import router as identity_router
from infrastructure.database.dependencies import close_database_connections
from infrastructure.logging import configure_logging
from infrastructure.observability import DefaultStartupProbe
from infrastructure.settings import get_auth_settings, get_cors_settings, get_settings
from infrastructure.version import __version__
from orders.presentation import router as orders_router
from realtime.dependencies import get_realtime_hub
from realtime.domain import CloseCode
from realtime.presentation import router as realtime_router
from shared_kernel.middleware import register_exception_handlers


@asynccontextmanager
async def tearoom_lifespan(app: FastAPI):
    """Application lifespan context.

    Manages:
    - Logging configuration
    - Refusing to start without an access-token signing key
    - Closing realtime connections and the database pool on shutdown
    """
    configure_logging(get_settings().log_level)
    probe = DefaultStartupProbe()

    if not get_auth_settings().secret_key.get_secret_value():
        probe.signing_key_missing()
        raise RuntimeError("TEAROOM_AUTH_SECRET_KEY is not set")

    hub = get_realtime_hub()
    probe.application_started(version=__version__)

    yield

    probe.application_stopping(open_connections=hub.connection_count)
    await hub.close_all(CloseCode.GOING_AWAY)
    await close_database_connections()


app = FastAPI(
    title="Tearoom API",
    description="Sessions and real-time order notifications for Tearoom tenants",
    version=__version__,
    lifespan=tearoom_lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_settings().origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Bounded context routes
app.include_router(identity_router)
app.include_router(realtime_router)
app.include_router(orders_router)


@app.get("/health")
def health():
    """Basic health check endpoint."""
    return {"status": "ok"}
