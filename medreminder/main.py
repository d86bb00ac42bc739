import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from medreminder.core.config import Settings, settings as default_settings
from medreminder.core.errors import PersistenceError
from medreminder.courses.ledger import DoseLedger
from medreminder.courses.services import CourseService
from medreminder.courses.store import CourseStore
from medreminder.db.database import build_engine, build_sessionmaker, create_tables
from medreminder.notifications.manager import NotificationManager, NotificationOutbox
from medreminder.routes import calendar, courses, inventory, profile, reminders

logger = logging.getLogger("medreminder")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # ---- Startup / Shutdown ----
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await create_tables(app.state.engine)
        logger.info("Database initialized.")
        yield
        logger.info("Shutting down MedReminder API...")
        await app.state.engine.dispose()

    app = FastAPI(
        title="MedReminder API",
        version="1.0.0",
        description="Dose scheduling and adherence tracking for the MedReminder app",
        lifespan=lifespan,
    )

    # One of each service for the whole process, shared through app.state
    engine = build_engine(settings.database_url, echo=settings.database_echo)
    sessionmaker = build_sessionmaker(engine)
    store = CourseStore(sessionmaker)
    notifications = NotificationManager(NotificationOutbox(), settings=settings)

    app.state.settings = settings
    app.state.engine = engine
    app.state.sessionmaker = sessionmaker
    app.state.store = store
    app.state.notifications = notifications
    app.state.ledger = DoseLedger(store, notifications)
    app.state.course_service = CourseService(store, notifications)

    # ---- CORS Setup ----
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError):
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    # ---- Health Check ----
    @app.get("/", tags=["system"])
    async def health_check():
        return {"status": "ok", "service": "MedReminder API"}

    # ---- Register Routes ----
    app.include_router(profile.router, prefix="/profile", tags=["Profile"])
    app.include_router(courses.router, prefix="/courses", tags=["Courses"])
    app.include_router(calendar.router, prefix="/calendar", tags=["Calendar"])
    app.include_router(inventory.router, prefix="/inventory", tags=["Inventory"])
    app.include_router(reminders.router, prefix="/reminders", tags=["Reminders"])

    return app


app = create_app()

# ---- Run Locally ----
if __name__ == "__main__":
    uvicorn.run("medreminder.main:app", host="0.0.0.0", port=8000, reload=True)
