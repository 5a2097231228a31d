"""
Creator Script Pipeline - Application Entry Point
Mounts the script pipeline service under a single FastAPI application
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from database import init_database
from services.pipeline import app as pipeline_module
from services.pipeline.sweeper import StuckJobSweeper
from shared.utils import config, setup_logging

logger = setup_logging("creator-script-pipeline")

pipeline_app = pipeline_module.app
orchestrator = pipeline_module.orchestrator
sweeper = StuckJobSweeper(pipeline_module.repository)


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_database()
    if config.get_pipeline_value("sweeper.enabled", True):
        sweeper.start()
    if config.get_pipeline_value("execution.resume_on_startup", True):
        await orchestrator.resume_interrupted()
    try:
        yield
    finally:
        await sweeper.stop()


app = FastAPI(
    title="Creator Script Pipeline API",
    description="""
    Turns text briefs, documents and videos into platform-ready content scripts.

    Jobs are processed asynchronously; poll a job's status endpoint for progress.
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Health",
            "description": "Service health and status endpoints",
        },
        {
            "name": "Scripts",
            "description": "Script generation pipeline - mounted at /api/v1/scripts",
        },
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get("allowed_origins", ["*"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes to exclude (internal FastAPI docs routes)
EXCLUDED_PATHS = {"/openapi.json", "/docs", "/docs/oauth2-redirect", "/redoc"}

for route in pipeline_app.routes:
    if hasattr(route, "path") and hasattr(route, "endpoint"):
        if route.path in EXCLUDED_PATHS:
            continue
        route_kwargs = {
            "path": f"/api/v1/scripts{route.path}",
            "endpoint": route.endpoint,
            "methods": route.methods,
            "tags": ["Scripts"],
        }
        if hasattr(route, "name"):
            route_kwargs["name"] = f"scripts_{route.name}"
        if hasattr(route, "response_model"):
            route_kwargs["response_model"] = route.response_model
        if getattr(route, "status_code", None):
            route_kwargs["status_code"] = route.status_code
        app.add_api_route(**route_kwargs)


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint with service information and API navigation"""
    return {
        "service": "Creator Script Pipeline API",
        "version": "1.0.0",
        "services": {
            "scripts": {
                "base_url": "/api/v1/scripts",
                "health": "/api/v1/scripts/health",
            },
        },
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json",
        },
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for all services"""
    return {
        "status": "healthy",
        "services": {
            "api_gateway": "operational",
            "scripts": "operational",
        },
        "execution_mode": orchestrator.mode.value,
    }


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting Creator Script Pipeline on http://0.0.0.0:8000")
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
