"""Multipart upload session state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from objupload.app.services.base import InvalidSessionTransitionError


class SessionState(str, Enum):
    CREATED = "created"
    PARTS_IN_FLIGHT = "parts_in_flight"
    COMPLETING = "completing"
    COMPLETED = "completed"
    ABORTED = "aborted"


_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.CREATED: frozenset(
        {SessionState.PARTS_IN_FLIGHT, SessionState.ABORTED}
    ),
    SessionState.PARTS_IN_FLIGHT: frozenset(
        {SessionState.COMPLETING, SessionState.ABORTED}
    ),
    SessionState.COMPLETING: frozenset(
        {SessionState.COMPLETED, SessionState.ABORTED}
    ),
    SessionState.COMPLETED: frozenset(),
    SessionState.ABORTED: frozenset(),
}


@dataclass(frozen=True, slots=True)
class PartResult:
    """Completion token of one uploaded part."""

    number: int
    token: str


@dataclass
class UploadSession:
    """Server-side multipart session as seen by the coordinator."""

    session_id: str
    bucket: str
    object_key: str
    state: SessionState = SessionState.CREATED
    history: list[SessionState] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if not self.history:
            self.history.append(self.state)

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self.state]

    def transition_to(self, state: SessionState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise InvalidSessionTransitionError(
                f"Cannot move upload {self.session_id} from {self.state.value} to {state.value}"
            )
        self.state = state
        self.history.append(state)
