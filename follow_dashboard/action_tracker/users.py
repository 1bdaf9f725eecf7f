# follow_dashboard/action_tracker/users.py
"""
User directory used for mention resolution and notification fan-out.
"""

import logging
from typing import Dict, Iterable, List, Optional

from .models import ActionTrackerError, User

logger = logging.getLogger(__name__)


class UnknownUserError(ActionTrackerError, LookupError):
    """Raised by a strict lookup for a user id that is not in the directory"""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"Unknown user: {user_id}")


class UserDirectory:
    """
    Read-only lookup of users by id and by exact display name.

    Usage:
        directory = UserDirectory(users)
        directory.get('u1')
        directory.by_name('Alice')
    """

    def __init__(self, users: Iterable[User]):
        self._by_id: Dict[str, User] = {}
        self._by_name: Dict[str, User] = {}
        for user in users:
            if user.id in self._by_id:
                logger.warning(f"Duplicate user id '{user.id}' ignored")
                continue
            self._by_id[user.id] = user
            # First user wins a name collision
            self._by_name.setdefault(user.name, user)

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self):
        return iter(self._by_id.values())

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._by_id

    def get(self, user_id: str) -> Optional[User]:
        return self._by_id.get(user_id)

    def require(self, user_id: str) -> User:
        user = self._by_id.get(user_id)
        if user is None:
            raise UnknownUserError(user_id)
        return user

    def by_name(self, name: str) -> Optional[User]:
        """Exact display name match (no case folding, no substrings)."""
        return self._by_name.get(name)

    def name_of(self, user_id: str, default: str = 'Unknown') -> str:
        user = self._by_id.get(user_id)
        return user.name if user else default

    def users(self) -> List[User]:
        return list(self._by_id.values())
