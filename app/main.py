from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.dependencies.services import get_graph_client_cached
from app.health import router as health_router
from app.routes.bookings import router as bookings_router


def configure_logging() -> None:
    """Ensure application logs use the INFO level by default."""
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    else:
        root_logger.setLevel(logging.INFO)

# Configure logging as soon as the module is loaded
configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages application startup and shutdown events.
    """
    settings = get_settings()

    settings_snapshot = settings.model_dump(
        exclude={"client_secret", "service_account_password"},
    )
    logger.info("Application settings on startup: %s", settings_snapshot)
    if not settings.bookings_business_id:
        logger.warning("HOTEL_BOOKINGS_BUSINESS_ID is not set; booking endpoints will return empty results")

    client = get_graph_client_cached()
    logger.info("Application startup complete.")

    try:
        yield
    finally:
        logger.info("Closing Graph client connection.")
        await client.close()
        logger.info("Application shutdown complete.")


settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
    redirect_slashes=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(bookings_router, prefix="/api/bookings")
app.include_router(health_router)
