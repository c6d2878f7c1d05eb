import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes.health import router as health_router
from api.db.session import init_engine, get_sessionmaker, get_db
from api.routes.recommend import router as recommend_router
from api.routes.interactions import router as interactions_router
from api.routes.preferences import router as preferences_router
from catalog.qloo_client import build_catalog_client

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logging.getLogger("api.core.cascade").setLevel(logging.INFO)
# Reduce noise from other modules
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    _initialise_application(app)
    owned_client = None
    if getattr(app.state, "catalog_client", None) is None:
        # Missing credentials raise CatalogConfigError here and abort startup.
        owned_client = build_catalog_client()
        app.state.catalog_client = owned_client
    yield
    if owned_client is not None:
        await owned_client.aclose()
        app.state.catalog_client = None


app = FastAPI(title="TasteBridge Recommendations", version="0.1.0", lifespan=app_lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routes
app.include_router(health_router, prefix="")
app.include_router(recommend_router)
app.include_router(interactions_router)
app.include_router(preferences_router)


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError):
    fields = sorted(
        {str(err.get("loc", ["?"])[-1]) for err in exc.errors() if err.get("loc")}
    )
    message = "Invalid request parameters"
    if fields:
        message = f"{message}: {', '.join(fields)}"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def _unhandled_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def _initialise_application(app: FastAPI) -> None:
    # When tests override get_db we skip touching the real database.
    if get_db in app.dependency_overrides:
        return
    init_engine()
    get_sessionmaker()
