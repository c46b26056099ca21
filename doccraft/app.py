import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from doccraft.application import get_workflow_service
from doccraft.core.settings import Settings
from doccraft.core.validation import InputValidationError
from doccraft.core.workflow import InvalidTransitionError
from doccraft.infrastructure import (
    GenerativeServiceError,
    GitHubContentFetcher,
    JsonFileHistoryStorage,
    configure_generative_service,
    configure_github_fetcher,
)
from doccraft.infrastructure.openai_service import OpenAIGenerativeService
from doccraft.routes import context, history, terminology, workflow

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="DocCraft API", version="0.1.0")

    service = get_workflow_service()
    service.configure(settings=settings)
    if settings.openai_api_key:
        generative = OpenAIGenerativeService(
            settings.openai_api_key,
            analysis_model=settings.analysis_model,
            assist_model=settings.assist_model,
            timeout=settings.call_timeout,
        )
        configure_generative_service(generative)
    else:
        logger.warning("OPENAI_API_KEY is not set; generative calls will fail")
    if settings.history_path:
        service.configure(storage=JsonFileHistoryStorage(settings.history_path))
    configure_github_fetcher(GitHubContentFetcher(token=settings.github_token))

    origins_env = os.getenv("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    if not origins:
        origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InputValidationError)
    async def input_validation_handler(request: Request, exc: InputValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition_handler(request: Request, exc: InvalidTransitionError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc), "stage": exc.stage.value})

    @app.exception_handler(GenerativeServiceError)
    async def generative_error_handler(request: Request, exc: GenerativeServiceError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(TimeoutError)
    async def timeout_handler(request: Request, exc: TimeoutError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"detail": "The generative service timed out."})

    app.include_router(workflow.router, prefix="/api")
    app.include_router(context.router, prefix="/api")
    app.include_router(history.router, prefix="/api")
    app.include_router(terminology.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "DocCraft API",
                "docs": "/docs",
                "health": "/api/history",
            }
        )

    return app


app = create_app()
