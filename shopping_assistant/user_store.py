from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional
from urllib.parse import quote

from .models import User

logger = logging.getLogger("shopassist.users")

AVATAR_URL_TEMPLATE = "https://api.dicebear.com/7.x/avataaars/svg?seed={seed}"


def avatar_for(email: str) -> str:
    """Deterministic avatar reference derived from the email address."""
    return AVATAR_URL_TEMPLATE.format(seed=quote(email, safe="@."))


def name_from_email(email: str) -> str:
    return email.split("@")[0]


class UserStore:
    """In-memory registry of users created through register."""

    def __init__(self) -> None:
        """Purpose: Initialize an empty user registry.
        Inputs/Outputs: No inputs; no return value.
        Side Effects / State: Creates the in-memory user map and its lock.
        Failure Modes: None.
        Testing Notes: A fresh store has no users.
        """
        self._users: Dict[str, User] = {}
        self._guard = threading.Lock()

    def register(self, name: str, email: str) -> User:
        """Purpose: Create and keep a user; passwords are never stored.
        Inputs/Outputs: Inputs are display name and email; output is the new User.
        Side Effects / State: Adds the user to the registry, replacing any previous
            registration for the same email.
        Failure Modes: None; registration always succeeds.
        Testing Notes: Register then login with the same email returns the same id.
        """
        user = User(email=email, name=name, avatar=avatar_for(email))
        with self._guard:
            self._users[email.lower()] = user
        logger.info("user registered id=%s", user.id)
        return user

    def login(self, email: str) -> User:
        """Return the registered user for email, or a transient user derived from it."""
        existing = self.find_by_email(email)
        if existing is not None:
            return existing
        return User(email=email, name=name_from_email(email), avatar=avatar_for(email))

    def find_by_email(self, email: str) -> Optional[User]:
        with self._guard:
            return self._users.get(email.lower())

    def list_users(self) -> List[User]:
        with self._guard:
            return list(self._users.values())
