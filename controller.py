#!/usr/bin/env python3
"""
BOSS Recruit Controller

Drives the page engine through a full run: make sure the site is open and
logged in, discover, then hand the discovered list to the sequencer.
"""

import logging
from typing import Optional

import recruit_config
from check_downloads import list_downloaded_resumes
from messages import (
    CHECK_LOGIN_STATUS, FILTER_CHAT_USERS, FILTER_GEEKS, OPEN_PAGE, MessageRequest,
)
from sequencer import DownloadSummary, Sequencer, UpdateCallback
from transport import MessageTransport

logger = logging.getLogger(__name__)


class LoginRequiredError(Exception):
    """The browser session is not logged in; the run is aborted before discovery."""


class GreetingRun:
    def __init__(self, geeks, session_id: Optional[str], outcome: Optional[str]):
        self.geeks = geeks
        self.session_id = session_id
        self.outcome = outcome


class RecruitController:
    def __init__(self, transport: MessageTransport, sequencer: Optional[Sequencer] = None,
                 download_dir: Optional[str] = None):
        self.transport = transport
        self.sequencer = sequencer or Sequencer(transport)
        self.download_dir = download_dir

    def stop(self):
        self.sequencer.request_stop()

    def _prepare(self, target_url: str):
        self.sequencer.send(MessageRequest(action=OPEN_PAGE, url=recruit_config.BOSS_BASE_URL))

        status = self.sequencer.send(MessageRequest(action=CHECK_LOGIN_STATUS))
        if not status.is_logged_in:
            logger.error(f"Not logged in to BOSS Zhipin{f': {status.error}' if status.error else ''}")
            raise LoginRequiredError("Please log in to BOSS Zhipin before starting a run")

        self.sequencer.send(MessageRequest(action=OPEN_PAGE, url=target_url))

    def greet_candidates(self, filter_keywords: str,
                         on_update: Optional[UpdateCallback] = None) -> GreetingRun:
        """Greet every recommended candidate matching filter_keywords."""
        self._prepare(recruit_config.RECOMMEND_URL)

        response = self.sequencer.send(MessageRequest(action=FILTER_GEEKS, filter_keywords=filter_keywords))
        geeks = response.geeks or []
        logger.info(f"Total Candidates Found: {len(geeks)}")
        if on_update:
            on_update(list(geeks))
        if not geeks:
            return GreetingRun([], response.session_id, response.outcome)

        greeted = self.sequencer.greet_all(geeks, session_id=response.session_id, on_update=on_update)
        return GreetingRun(greeted, response.session_id, response.outcome)

    def download_chat_resumes(self, filter_keywords: str,
                              on_update: Optional[UpdateCallback] = None) -> DownloadSummary:
        """Request and download resumes from chat users with unread messages."""
        self._prepare(recruit_config.CHAT_URL)

        response = self.sequencer.send(MessageRequest(action=FILTER_CHAT_USERS, filter_keywords=filter_keywords))
        users = response.users or []
        logger.info(f"Found {len(users)} users with new messages")
        if on_update:
            on_update(list(users))

        summary = self.sequencer.download_resumes(users, session_id=response.session_id, on_update=on_update)
        logger.info(f"Successfully Downloaded: {summary.succeeded}")
        logger.info(f"Failed: {summary.failed}")
        if self.download_dir:
            logger.info(f"Files in directory: {len(list_downloaded_resumes(self.download_dir))}")
        return summary


def main():
    """Single-process run: browser, engine and controller in one interpreter."""
    from boss_browser import BossBrowser
    from page_engine import PageEngine
    from transport import LocalTransport

    recruit_config.setup_logging('recruit_controller.log')

    mode = input("Greet candidates (g) or download chat resumes (r)? [g]: ").strip().lower() or "g"
    keywords = input(f"Filter keywords (or press Enter for {recruit_config.DEFAULT_FILTER_KEYWORDS}): ").strip()
    keywords = keywords or recruit_config.DEFAULT_FILTER_KEYWORDS

    browser = BossBrowser(recruit_config.RESUME_DIR, cookies=recruit_config.load_cookies_from_env())
    controller = RecruitController(LocalTransport(PageEngine(browser)), download_dir=recruit_config.RESUME_DIR)
    try:
        if mode == "r":
            summary = controller.download_chat_resumes(keywords)
            logger.info(f"Done: {summary.succeeded} downloaded, {summary.failed} failed")
        else:
            run = controller.greet_candidates(keywords)
            for geek in run.geeks:
                logger.info(f"  - {geek.name}: {geek.status}")
    except LoginRequiredError as e:
        logger.error(str(e))
    except KeyboardInterrupt:
        controller.stop()
    finally:
        browser.close()


if __name__ == "__main__":
    main()
