"""
# Session Gate

Client-side authorization gate for the admin panel. The gate owns one long-lived
subscription to the identity provider's session stream, opened by `start()` and torn
down by `close()`, and folds every session change into a `SessionState`.

```
UNAUTHENTICATED ──sign-in──▶ AUTHENTICATING ──identity──▶ AUTHENTICATED(uid)
       ▲                                                       │ admin lookup
       │                                         ┌─────────────┴─────────────┐
       └────────────── sign-out (any state) ─────┤ AUTHORIZED   UNAUTHORIZED │
                                                 └───────────────────────────┘
```

Only `AUTHORIZED` opens the admin panel. An admin lookup that completes after the
session has changed again is discarded.
"""

import inspect
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol, Union

from blogsite.managers.logging_manager import get_logger
from blogsite.models.admin_models import Identity

logger = get_logger(prefix="[Session Gate]")

SessionListener = Callable[[Optional[Identity]], Union[None, Awaitable[None]]]
AdminLookup = Callable[[Identity], Awaitable[bool]]


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"


class IdentityProvider(Protocol):
    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        """Register `listener` for session changes; returns an unsubscribe callable."""


class SessionGate:
    def __init__(self, provider: IdentityProvider, is_admin: AdminLookup):
        self._provider = provider
        self._is_admin = is_admin
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._generation = 0
        self.state = SessionState.UNAUTHENTICATED
        self.identity: Optional[Identity] = None

    @property
    def can_access_admin(self) -> bool:
        return self.state is SessionState.AUTHORIZED

    @property
    def started(self) -> bool:
        return self._unsubscribe is not None

    def start(self) -> None:
        """Open the session subscription; the gate is AUTHENTICATING until the first event."""
        if self.started:
            return
        self.state = SessionState.AUTHENTICATING
        self._unsubscribe = self._provider.on_session_change(self.handle_session)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._reset()

    def begin_sign_in(self) -> None:
        self._generation += 1
        self.state = SessionState.AUTHENTICATING

    def sign_in_failed(self) -> None:
        self._reset()

    async def sign_in(self, attempt: Callable[[], Awaitable[object]]) -> SessionState:
        """
        Run a sign-in attempt against the provider.

        The gate is AUTHENTICATING while `attempt` runs. On success the provider's session
        event drives the remaining transitions; on failure the gate falls back to
        UNAUTHENTICATED and the error propagates to the login form.
        """
        self.begin_sign_in()
        try:
            await attempt()
        except Exception:
            self.sign_in_failed()
            raise
        return self.state

    async def handle_session(self, identity: Optional[Identity]) -> SessionState:
        """
        Apply one event from the session stream.

        `None` means signed out. Otherwise the gate is AUTHENTICATED while the admin
        lookup runs and ends AUTHORIZED or UNAUTHORIZED. A lookup error counts as
        not authorized.
        """
        self._generation += 1
        generation = self._generation

        if identity is None:
            self._reset()
            return self.state

        self.identity = identity
        self.state = SessionState.AUTHENTICATED

        try:
            result = self._is_admin(identity)
            allowed = await result if inspect.isawaitable(result) else result
        except Exception as e:
            logger.warning("Admin lookup failed for %s: %s", identity.uid, e)
            allowed = False

        if generation != self._generation:
            logger.debug("Discarding stale admin lookup for %s", identity.uid)
            return self.state

        self.state = SessionState.AUTHORIZED if allowed else SessionState.UNAUTHORIZED
        logger.info("Session %s resolved to %s", identity.uid, self.state.value)
        return self.state

    def _reset(self) -> None:
        self._generation += 1
        self.identity = None
        self.state = SessionState.UNAUTHENTICATED
