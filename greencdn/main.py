"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from greencdn.api.v1 import router as v1_router
from greencdn.core.config import settings

app = FastAPI(
    title="GreenCDN API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(v1_router, prefix=settings.API_V1_PREFIX)

# Local blob backend: serve stored images the way Spaces would.
if settings.BLOB_BACKEND == "local":
    app.mount(
        settings.BLOB_LOCAL_MOUNT_PATH,
        StaticFiles(directory=settings.BLOB_LOCAL_PATH, check_dir=False),
        name="media",
    )


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "GreenCDN API"}
