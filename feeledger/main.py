import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from feeledger.api.v1.classes.router import router as classes_router
from feeledger.api.v1.fees.router import router as fees_router
from feeledger.api.v1.students.router import router as students_router
from feeledger.core.config import settings
from feeledger.db.session import create_all

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Creating database tables if missing...")
    await create_all()
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Fee Ledger Backend", lifespan=lifespan)

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(classes_router)
    app.include_router(students_router)
    app.include_router(fees_router)

    return app


app = create_app()
