# newsdesk/main.py
from typing import Optional

from fastapi import FastAPI

from .logging_setup import setup_logging, get_logger
from .middleware import RequestContextMiddleware
from .exception_handling import register_exception_handlers
from .lifespan import lifespan
from .services import Services

from .routers import chat, health, ingest, news, prefs


setup_logging()  # <-- set up logging ASAP
logger = get_logger("newsdesk.main")


def create_app(services: Optional[Services] = None) -> FastAPI:
    app = FastAPI(title="Newsdesk", version="0.1.0", lifespan=lifespan)
    app.state.services = services or Services.build()
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    # Include routers
    app.include_router(health.router)
    app.include_router(news.router)
    app.include_router(chat.router)
    app.include_router(prefs.router)
    app.include_router(ingest.router)
    return app


app = create_app()
