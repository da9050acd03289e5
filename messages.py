"""
Wire models exchanged between the controller and the page engine.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

CHECK_LOGIN_STATUS = "checkLoginStatus"
OPEN_PAGE = "openPage"
FILTER_GEEKS = "filterGeeks"
DO_GREETING = "doGreeting"
FILTER_CHAT_USERS = "filterChatUsers"
DO_DOWNLOAD_RESUME = "doDownloadResume"

# Entity statuses
STATUS_PENDING = "pending"
STATUS_GREETED = "greeted"
STATUS_DISABLED = "disabled"
STATUS_FAILED = "failed"
STATUS_RESUME_DOWNLOADED = "resume downloaded"
STATUS_DOWNLOAD_FAILED = "download failed"


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Geek(WireModel):
    """A discovered candidate or chat user."""
    name: str
    content: str
    matched_keywords: Optional[str] = None
    status: Optional[str] = None
    message_count: Optional[int] = None


class MessageRequest(WireModel):
    action: str
    index: Optional[int] = None
    filter_keywords: Optional[str] = None
    session_id: Optional[str] = None
    url: Optional[str] = None


class PhaseResult(WireModel):
    name: str
    outcome: str
    detail: Optional[str] = None


class MessageResponse(WireModel):
    success: Optional[bool] = None
    is_logged_in: Optional[bool] = None
    data: Optional[Any] = None
    error: Optional[str] = None
    geeks: Optional[List[Geek]] = None
    geek: Optional[Geek] = None
    users: Optional[List[Geek]] = None
    index: Optional[int] = None
    session_id: Optional[str] = None
    outcome: Optional[str] = None
    phases: Optional[List[PhaseResult]] = None
    url: Optional[str] = None
