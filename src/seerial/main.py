"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from seerial import __version__
from seerial.api.dependencies import app_state
from seerial.api.routes import router as api_router
from seerial.core.buffer import ReceiveBuffer
from seerial.core.config import Settings, setup_logging
from seerial.core.errors import OpenFailedError
from seerial.core.models import ConnectionState, HealthResponse
from seerial.serial.session import SerialSession

logger = logging.getLogger(__name__)


def _on_error(error: BaseException) -> None:
    logger.error("Serial session error: %s", error)
    app_state.last_error = str(error)


def _on_closed() -> None:
    logger.info("Serial session closed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    settings = app_state.settings or Settings()
    app_state.settings = settings

    setup_logging(settings.log_level)
    logger.info("Starting seerial gateway v%s", __version__)

    # Initialize components
    app_state.buffer = ReceiveBuffer(maxlen=settings.receive_buffer_size)
    app_state.session = SerialSession.from_config(settings.session_config())
    app_state.session.set_on_data(app_state.buffer.on_data)
    app_state.session.set_on_error(_on_error)
    app_state.session.set_on_closed(_on_closed)

    if settings.auto_open:
        try:
            await app_state.session.open()
            logger.info("Connected to %s", settings.serial_port)
        except OpenFailedError as e:
            app_state.last_error = str(e)
            logger.warning("Failed to open %s, use POST /api/session/open to retry", settings.serial_port)

    yield

    # Shutdown
    logger.info("Shutting down...")
    if app_state.session is not None:
        await app_state.session.close()


app = FastAPI(
    title="seerial gateway",
    description="REST gateway for a single serial link",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(api_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "seerial gateway",
        "version": __version__,
        "status": "running",
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    session = app_state.session

    if session is None:
        return HealthResponse(
            status="unhealthy",
            state=ConnectionState.IDLE,
            link_address=None,
            last_error=app_state.last_error,
        )

    return HealthResponse(
        status="healthy" if session.is_connected() else "unhealthy",
        state=session.state,
        link_address=session.config.link_address,
        last_error=app_state.last_error,
    )


def main():
    """Run the application (for CLI entry point)."""
    import uvicorn

    settings = Settings()
    setup_logging(settings.log_level)
    app_state.settings = settings

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
