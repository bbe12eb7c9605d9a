import uvicorn
from fastapi import FastAPI

from app.api.errors import register_exception_handlers
from app.api.routes.admin_code_pools import router as admin_code_pools_router
from app.api.routes.health import router as health_router
from app.api.routes.paid_content import router as paid_content_router
from app.api.routes.student_codes import router as student_codes_router
from app.core.config import get_settings
from app.core.logging import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Edu Access API",
        version="0.1.0",
        docs_url="/docs" if settings.app_env != "prod" else None,
        redoc_url="/redoc" if settings.app_env != "prod" else None,
    )
    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(student_codes_router)
    app.include_router(paid_content_router)
    app.include_router(admin_code_pools_router)
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
