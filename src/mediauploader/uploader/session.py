"""State of a single upload call."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from mediauploader.exceptions import SessionStateError
from mediauploader.uploader.planner import ChunkRange


class SessionState(str, Enum):
    """Upload session lifecycle."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass
class UploadSession:
    """Progress of one upload: bytes acknowledged and continuation ID.

    A session moves NOT_STARTED -> IN_PROGRESS -> COMPLETED or ABORTED
    and is never reused after reaching a terminal state.
    """

    source_size: int
    chunk_size: int
    bytes_sent: int = 0
    continuation_id: Optional[str] = None
    state: SessionState = SessionState.NOT_STARTED

    @property
    def is_terminal(self) -> bool:
        return self.state in (SessionState.COMPLETED, SessionState.ABORTED)

    def start(self) -> None:
        if self.state is not SessionState.NOT_STARTED:
            raise SessionStateError(f"Cannot start a session in state {self.state.value}")
        self.state = SessionState.IN_PROGRESS

    def ensure_active(self) -> None:
        if self.state is not SessionState.IN_PROGRESS:
            raise SessionStateError(f"Session is {self.state.value}, not in progress")

    def acknowledge(self, chunk: ChunkRange, continuation_id: Optional[str] = None) -> None:
        """Record a chunk accepted by the service.

        The first continuation ID received is adopted; later ones are
        ignored so the ID never changes within a session.
        """
        self.ensure_active()
        if continuation_id and self.continuation_id is None:
            self.continuation_id = continuation_id
        self.bytes_sent += chunk.length

    def complete(self) -> None:
        self.ensure_active()
        self.state = SessionState.COMPLETED

    def abort(self) -> None:
        if not self.is_terminal:
            self.state = SessionState.ABORTED
