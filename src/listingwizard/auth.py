"""Auth gate.

Resolves an authenticated session with an accepted role before the wizard
becomes available. Session rehydration after a reload can be slow, so:

- With a tri-state status signal from the provider (session_status() not
  None), the gate polls it until it settles, bounded by
  initial_delay + grace_window.
- Otherwise it uses two timed phases: wait initial_delay and re-check; if
  there is still no session but a stored session artifact exists, wait the
  grace window before giving up.

Outcomes: a Session, or AuthenticationRequiredError (no session, no
artifact), SessionExpiredError (artifact, never rehydrated) or
AccessDeniedError (role not accepted).
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from enum import StrEnum

from listingwizard.core.errors import (
    AccessDeniedError,
    AuthError,
    AuthenticationRequiredError,
    SessionExpiredError,
)
from listingwizard.core.interfaces import AuthProvider, Session, SessionStatus
from listingwizard.core.logging import get_logger

log = get_logger(__name__)

DEFAULT_ACCEPTED_ROLES = ("property_owner", "owner", "user", "customer")


class AuthPhase(StrEnum):
    CHECKING = "checking"
    AWAITING_SESSION = "awaiting_session"


class AuthGate:
    def __init__(
        self,
        provider: AuthProvider,
        *,
        accepted_roles: Iterable[str] = DEFAULT_ACCEPTED_ROLES,
        initial_delay: float = 1.0,
        grace_window: float = 3.0,
        status_poll: float = 0.25,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_phase: Callable[[AuthPhase], None] | None = None,
    ) -> None:
        if status_poll <= 0:
            raise ValueError("status_poll must be positive")
        self.provider = provider
        self.accepted_roles = frozenset(accepted_roles)
        self.initial_delay = initial_delay
        self.grace_window = grace_window
        self.status_poll = status_poll
        self._sleep = sleep
        self._on_phase = on_phase

    def _phase(self, phase: AuthPhase) -> None:
        log.debug(f"Auth gate phase: {phase}")
        if self._on_phase is not None:
            self._on_phase(phase)

    def _status(self) -> SessionStatus | None:
        getter = getattr(self.provider, "session_status", None)
        if getter is None:
            return None
        return getter()

    def check_role(self, session: Session) -> Session:
        if session.role not in self.accepted_roles:
            log.warning(f"Role not permitted for property listing: {session.role!r}")
            raise AccessDeniedError(session.role)
        return session

    def _missing_session_error(self) -> AuthError:
        if self.provider.has_session_artifact():
            return SessionExpiredError()
        return AuthenticationRequiredError()

    def current(self) -> Session:
        """Synchronous re-check of the live session (used before submit)."""
        session = self.provider.get_current_session()
        if session is None:
            raise self._missing_session_error()
        return self.check_role(session)

    async def resolve(self) -> Session:
        """Wait for an authenticated session of an accepted role.

        Raises:
            AuthError: One of the three outcomes described in the module doc
        """
        self._phase(AuthPhase.CHECKING)
        if self._status() is not None:
            return await self._resolve_from_status()
        return await self._resolve_timed()

    async def _resolve_timed(self) -> Session:
        await self._sleep(self.initial_delay)
        session = self.provider.get_current_session()
        if session is None:
            if not self.provider.has_session_artifact():
                raise AuthenticationRequiredError()

            log.info("Session not ready yet; waiting for it to load")
            self._phase(AuthPhase.AWAITING_SESSION)
            await self._sleep(self.grace_window)
            session = self.provider.get_current_session()
            if session is None:
                raise SessionExpiredError()
        return self.check_role(session)

    async def _resolve_from_status(self) -> Session:
        budget = self.initial_delay + self.grace_window
        waited = 0.0
        awaiting = False
        while True:
            status = self._status()
            if status == SessionStatus.AUTHENTICATED:
                session = self.provider.get_current_session()
                if session is not None:
                    return self.check_role(session)
            elif status == SessionStatus.ANONYMOUS:
                raise self._missing_session_error()

            if waited >= budget:
                raise self._missing_session_error()
            if waited >= self.initial_delay and not awaiting:
                awaiting = True
                self._phase(AuthPhase.AWAITING_SESSION)

            await self._sleep(self.status_poll)
            waited += self.status_poll
