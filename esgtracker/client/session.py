"""
session.py — signed-in state for presentation-layer code.

One AuthSession instance is created by the caller and passed to every
ESGClient and view that needs it. Listeners are called after each change
with the session itself as the only argument.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from esgtracker.auth.schemas import UserOut

logger = logging.getLogger(__name__)

Listener = Callable[["AuthSession"], None]


class AuthSession:
    def __init__(self) -> None:
        self._token: Optional[str] = None
        self._user: Optional[UserOut] = None
        self._listeners: List[Listener] = []

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def user(self) -> Optional[UserOut]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register listener; returns a function that removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def sign_in(self, token: str, user: UserOut) -> None:
        self._token = token
        self._user = user
        logger.debug("Session signed in user_id=%s", user.id)
        self._notify()

    def sign_out(self) -> None:
        """Clear token and user. A no-op (and no notification) when already signed out."""
        if self._token is None and self._user is None:
            return
        self._token = None
        self._user = None
        logger.debug("Session signed out")
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
