from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from schoolerp.api.v1.auth.router import router as auth_router
from schoolerp.api.v1.classes.classes_router import router as classes_router
from schoolerp.api.v1.profiles.router import router as profiles_router
from schoolerp.api.v1.storage.router import router as storage_router
from schoolerp.api.v1.students.router import router as students_router
from schoolerp.api.v1.subjects.router import router as subjects_router
from schoolerp.api.v1.teacher_subjects.router import router as teacher_subjects_router
from schoolerp.api.v1.teachers.router import router as teachers_router
from schoolerp.core.config import settings
from schoolerp.core.logging import configure_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("application_startup", environment=settings.environment)
    try:
        yield
    finally:
        logger.info("application_shutdown")


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="School ERP Backend", lifespan=lifespan)

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth_router)
    app.include_router(profiles_router)
    app.include_router(classes_router)
    app.include_router(subjects_router)
    app.include_router(students_router)
    app.include_router(teachers_router)
    app.include_router(teacher_subjects_router)
    app.include_router(storage_router)

    return app


app = create_app()
