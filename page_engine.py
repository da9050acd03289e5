"""
Page engine: answers controller messages against the live recruiting page.

Owns the browser and the current discovery session. Only one message is
handled at a time; a request that arrives while another is in flight is
refused rather than queued.
"""

import logging
import threading
from typing import Optional

from selenium.common.exceptions import WebDriverException

import recruit_config
from boss_browser import BossBrowser
from candidate_discovery import discover_candidates
from chat_discovery import discover_chat_users
from discovery_session import DiscoverySession, NoSessionError, SessionError
from messages import (
    CHECK_LOGIN_STATUS, DO_DOWNLOAD_RESUME, DO_GREETING, FILTER_CHAT_USERS, FILTER_GEEKS, OPEN_PAGE,
    MessageRequest, MessageResponse,
)
from page_actions import greet, request_resume

logger = logging.getLogger(__name__)


class PageEngine:
    """Dispatches controller messages to the browser and owns the current discovery session."""

    def __init__(self, browser: BossBrowser):
        self.browser = browser
        self.session: Optional[DiscoverySession] = None
        self._in_flight = threading.Lock()
        # action tag -> handler
        self._handlers = {
            CHECK_LOGIN_STATUS: self.check_login_status,
            OPEN_PAGE: self.open_page,
            FILTER_GEEKS: self.filter_geeks,
            DO_GREETING: self.do_greeting,
            FILTER_CHAT_USERS: self.filter_chat_users,
            DO_DOWNLOAD_RESUME: self.do_download_resume,
        }

    def handle(self, request: MessageRequest) -> MessageResponse:
        handler = self._handlers.get(request.action)
        if handler is None:
            return MessageResponse(success=False, error=f"Unknown action: {request.action}")

        if not self._in_flight.acquire(blocking=False):
            logger.warning(f"Refusing {request.action}: another action is in flight")
            return MessageResponse(success=False, error="busy")
        try:
            return handler(request)
        except SessionError as e:
            logger.error(f"{request.action} rejected: {e}")
            return MessageResponse(success=False, error=str(e))
        except WebDriverException as e:
            logger.error(f"Error handling {request.action}: {e}")
            response = MessageResponse(success=False, error=e.msg or str(e))
            if request.action == FILTER_GEEKS:
                response.geeks = []
            elif request.action == FILTER_CHAT_USERS:
                response.users = []
            return response
        finally:
            self._in_flight.release()

    def _current_session(self) -> DiscoverySession:
        if self.session is None:
            raise NoSessionError("No discovery has been run yet")
        return self.session

    def check_login_status(self, request: MessageRequest) -> MessageResponse:
        status = self.browser.check_login_status()
        return MessageResponse(is_logged_in=status.is_logged_in, data=status.data, error=status.error)

    def open_page(self, request: MessageRequest) -> MessageResponse:
        url = request.url or recruit_config.BOSS_BASE_URL
        return MessageResponse(success=True, url=self.browser.open_page(url))

    def filter_geeks(self, request: MessageRequest) -> MessageResponse:
        keywords = request.filter_keywords or recruit_config.DEFAULT_FILTER_KEYWORDS
        self.session = None
        result = discover_candidates(self.browser, keywords)
        self.session = result.session
        return MessageResponse(geeks=result.entities, session_id=result.session.session_id,
                               outcome=result.outcome.value)

    def filter_chat_users(self, request: MessageRequest) -> MessageResponse:
        keywords = request.filter_keywords or recruit_config.DEFAULT_FILTER_KEYWORDS
        self.session = None
        result = discover_chat_users(self.browser, keywords)
        self.session = result.session
        return MessageResponse(users=result.entities, session_id=result.session.session_id,
                               outcome=result.outcome.value)

    def do_greeting(self, request: MessageRequest) -> MessageResponse:
        geek = greet(self.browser, self._current_session(), request.index, request.session_id)
        return MessageResponse(success=True, geek=geek)

    def do_download_resume(self, request: MessageRequest) -> MessageResponse:
        outcome = request_resume(self.browser, self._current_session(), request.index, request.session_id)
        return MessageResponse(success=True, index=outcome.index, phases=outcome.phases)
