import logging
from typing import Optional

from .config import settings
from .database import Storage
from .models import UserIdentity

logger = logging.getLogger(__name__)


class IdentityStore:
    """Remembers the last username between runs.

    A restored identity is only a convenience marker ("auto-connected"),
    nothing is verified.
    """

    def __init__(
        self,
        storage: Storage,
        key: str = settings.USERNAME_KEY,
        legacy_key: str = settings.LEGACY_USERNAME_KEY,
    ):
        self.storage = storage
        self.key = key
        self.legacy_key = legacy_key

    def load(self) -> Optional[UserIdentity]:
        username = self.storage.get(self.key) or self.storage.get(self.legacy_key)
        if not username:
            return None
        logger.info(f"Restored username {username}")
        return UserIdentity(username=username, locked=True)

    def save(self, username: str):
        self.storage.set(self.key, username)

    def clear(self):
        self.storage.remove(self.key)
        self.storage.remove(self.legacy_key)
