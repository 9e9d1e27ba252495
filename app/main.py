import uvicorn
from fastapi import FastAPI

from app.api.routes.challenges import router as challenges_router
from app.api.routes.health import router as health_router
from app.api.routes.internal_challenges import router as internal_challenges_router
from app.api.routes.internal_subscriptions import router as internal_subscriptions_router
from app.core.config import get_settings
from app.core.logging import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, service="api")

    docs_enabled = settings.app_env != "prod"
    app = FastAPI(
        title="Six Degrees Daily API",
        version="0.1.0",
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )
    app.include_router(health_router)
    app.include_router(challenges_router)
    app.include_router(internal_challenges_router)
    app.include_router(internal_subscriptions_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
