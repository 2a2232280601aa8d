from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from faithsearch.api.routes import catalog, research
from faithsearch.config import settings
from faithsearch.services.catalog import get_catalog


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: fail fast on a bad ENABLED_CATEGORIES / mirror override
    get_catalog()
    yield


app = FastAPI(
    title="faithsearch",
    description="Comparative religion and philosophy research over curated sources",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(research.router)
app.include_router(catalog.router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": "faithsearch"}
