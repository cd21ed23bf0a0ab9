from fastapi import Request

from .config import settings
from .database import SQLiteStorage
from .history import HistoryStore
from .identity import IdentityStore
from .quiz_source import QuizSourceFactory
from .session import SessionController

storage = SQLiteStorage()
history_store = HistoryStore(storage)
identity_store = IdentityStore(storage)
quiz_source = QuizSourceFactory.create(
    settings.QUIZ_SOURCE, topic=settings.DEFAULT_TOPIC, directory=settings.QUIZ_DIR
)
controller = SessionController(quiz_source, history_store, identity_store)


def get_controller(request: Request) -> SessionController:
    return request.app.state.controller
