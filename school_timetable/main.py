import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from school_timetable.api.v1.periods.router import router as periods_router
from school_timetable.api.v1.timetables.router import router as timetables_router
from school_timetable.core.config import settings


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="School Timetable Backend")

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers. Periods first: /api/v1/timetables/periods must not be captured by /{timetable_id}.
    app.include_router(periods_router)
    app.include_router(timetables_router)

    return app


app = create_app()
