# admin.py
import logging
import secrets
from typing import List, Optional

from database import Store
from errors import AuthorizationError
from models import AdminStats, User

logger = logging.getLogger(__name__)


class SharedSecretAuthorizer:
    """Single shared credential, compared in constant time."""

    def __init__(self, secret: str):
        self._secret = secret.encode("utf-8")

    def is_authorized(self, key: Optional[str]) -> bool:
        if key is None:
            return False
        return secrets.compare_digest(key.encode("utf-8"), self._secret)

    def require(self, key: Optional[str]) -> None:
        if not self.is_authorized(key):
            raise AuthorizationError("Unauthorized")


def list_users(store: Store) -> List[User]:
    return store.load().users


def _parse_id(raw) -> Optional[int]:
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return None


def delete_user(store: Store, user_id) -> None:
    """
    Hard-delete a user. `user_id` may be an int or the raw query text.
    Unknown, missing or non-numeric ids leave the data unchanged but still save.
    """
    target = _parse_id(user_id)
    db = store.load()
    before = len(db.users)
    db.users = [u for u in db.users if target is None or u.id != target]
    store.save(db)
    if len(db.users) < before:
        logger.info("Deleted user %s", target)


def compute_stats(store: Store) -> AdminStats:
    db = store.load()
    return AdminStats(
        total_users=len(db.users),
        total_messages=len(db.messages),
        active_matches=len(db.users) // 2,  # rough estimate, one pair per two users
    )
