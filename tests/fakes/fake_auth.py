from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from listingwizard.core.interfaces import Session, SessionStatus


@dataclass
class FakeAuthProvider:
    """Session capability with directly settable state.

    status=None mimics a provider that cannot report rehydration state.
    """

    session: Session | None = None
    artifact: bool = False
    status: SessionStatus | None = None
    lookups: int = 0

    def get_current_session(self) -> Session | None:
        self.lookups += 1
        return self.session

    def has_session_artifact(self) -> bool:
        return self.artifact

    def session_status(self) -> SessionStatus | None:
        return self.status


@dataclass
class FakeSleep:
    """Records requested delays instead of waiting.

    on_call(n, delay) runs after the n-th call (1-based) is recorded, which
    lets a test change the world "during" a wait.
    """

    calls: list[float] = field(default_factory=list)
    on_call: Callable[[int, float], None] | None = None

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)
        if self.on_call is not None:
            self.on_call(len(self.calls), delay)

    @property
    def total(self) -> float:
        return sum(self.calls)
