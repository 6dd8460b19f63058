from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ...core.config import Settings, get_settings
from ...core.exceptions import register_exception_handlers
from ...core.interfaces import SessionManager
from ...core.logging import setup_logging
from ...managers.interview import InterviewSessionManager
from ...processors.evaluation import InterviewEvaluator
from ...processors.questions import QuestionGenerator
from ...processors.text_generation import build_text_generator
from ...storage import build_session_store
from .routers import health, interview, ui

logger = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None,
               session_manager: Optional[SessionManager] = None) -> FastAPI:
    """
    Build the API. Collaborators are wired at startup unless a ready
    `session_manager` is passed in.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if session_manager is not None:
            app.state.session_manager = session_manager
            yield
            return

        text_generator = build_text_generator(settings)
        store = await build_session_store(settings)
        app.state.session_manager = InterviewSessionManager(
            store=store,
            question_provider=QuestionGenerator(text_generator),
            evaluator=InterviewEvaluator(text_generator),
            default_role=settings.INTERVIEW_ROLE,
        )
        logger.info(
            "app_started",
            store=type(store).__name__,
            generative_backend=text_generator is not None,
        )
        try:
            yield
        finally:
            await store.close()
            if text_generator is not None:
                await text_generator.close()

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.CLIENT_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix=settings.API_PREFIX)
    app.include_router(interview.router, prefix=settings.API_PREFIX)
    app.include_router(ui.router)

    return app
