"""
Index-aligned entity/handle lists produced by one discovery pass.

The recruiting page assigns no stable ids to its cards, so an entity is
addressed by its position in the last discovery. A session is replaced
wholesale by the next discovery; requests carrying an older session id are
rejected.
"""

import uuid
from enum import Enum
from typing import Any, List, Optional, Tuple

from messages import Geek

CANDIDATES = "candidates"
CHAT_USERS = "chat_users"


class DiscoveryOutcome(str, Enum):
    FOUND = "found"
    EMPTY = "empty"               # list located, nothing matched
    NO_SCROLL_ROOT = "no_scroll_root"  # container missing, nothing to do


class SessionError(Exception):
    """Base class for errors addressing a discovery session."""


class NoSessionError(SessionError):
    pass


class StaleSessionError(SessionError):
    pass


class SessionIndexError(SessionError):
    pass


class DiscoverySession:
    def __init__(self, kind: str, frame_name: Optional[str] = None):
        self.session_id = uuid.uuid4().hex
        self.kind = kind
        self.frame_name = frame_name
        self.entities: List[Geek] = []
        self.handles: List[Any] = []

    def __len__(self):
        return len(self.entities)

    def add(self, entity: Geek, handle: Any):
        self.entities.append(entity)
        self.handles.append(handle)

    def lookup(self, index: Optional[int], session_id: Optional[str] = None) -> Tuple[Geek, Any]:
        if session_id is not None and session_id != self.session_id:
            raise StaleSessionError(
                f"Session {session_id} was replaced by {self.session_id}; run discovery again"
            )
        if index is None or index < 0 or index >= len(self.entities):
            raise SessionIndexError(f"Index {index} out of range, only {len(self.entities)} entities")
        return self.entities[index], self.handles[index]


class DiscoveryResult:
    def __init__(self, session: DiscoverySession, outcome: DiscoveryOutcome):
        self.session = session
        self.outcome = outcome

    @property
    def entities(self) -> List[Geek]:
        return self.session.entities

    @classmethod
    def from_session(cls, session: DiscoverySession) -> "DiscoveryResult":
        outcome = DiscoveryOutcome.FOUND if session.entities else DiscoveryOutcome.EMPTY
        return cls(session, outcome)
