import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from typing import Optional

from fastapi import FastAPI

from .config import settings
from .database import init_db
from .globals import controller as default_controller
from .log_handler import SQLiteHandler
from .router import router
from .session import SessionController


# --- Logging Setup ---
def setup_logging():
    logger = logging.getLogger("foxquiz")
    logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    if logger.handlers:
        return

    if not os.path.exists(settings.LOG_DIR):
        os.makedirs(settings.LOG_DIR, exist_ok=True)
    log_path = os.path.join(settings.LOG_DIR, settings.LOG_FILE)
    file_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(file_handler)

    # Warnings and errors are kept in the database for operators
    db_handler = SQLiteHandler()
    db_handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))
    logger.addHandler(db_handler)

    # Also configure root logger to see logs from other libraries
    logging.basicConfig(level=logging.INFO)


# --- Lifecycle ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.controller.startup()
    yield


# --- App Factory ---
def create_app(controller: Optional[SessionController] = None) -> FastAPI:
    init_db()
    setup_logging()
    app = FastAPI(
        title=settings.PROJECT_NAME,
        debug=settings.DEBUG,
        lifespan=lifespan,
        root_path=settings.ROOT_PATH,
    )

    app.state.controller = controller or default_controller
    app.include_router(router)

    return app
