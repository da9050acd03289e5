"""
One-at-a-time driver for per-entity page actions.

Items are processed strictly in order with exactly one message outstanding.
A stop request is honoured before the next item is dispatched; an action
already sent to the page is never interrupted. A failing item is marked and
the batch moves on.
"""

import time
import logging
import threading
from typing import Callable, List, Optional

from messages import (
    DO_DOWNLOAD_RESUME, DO_GREETING, STATUS_DOWNLOAD_FAILED, STATUS_FAILED, STATUS_RESUME_DOWNLOADED,
    Geek, MessageRequest, MessageResponse,
)
from transport import MessageTransport, TransportError

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[List[Geek]], None]


def snapshot(entities: List[Geek]) -> List[Geek]:
    return [entity.model_copy() for entity in entities]


class ActionInFlightError(Exception):
    """A second message was sent while one was still outstanding."""


class DownloadSummary:
    def __init__(self, users: List[Geek], succeeded: int, failed: int, stopped: bool):
        self.users = users
        self.succeeded = succeeded
        self.failed = failed
        self.stopped = stopped


class Sequencer:
    def __init__(self, transport: MessageTransport, resume_delay: float = 1.0, sleep=time.sleep):
        """
        Args:
            transport: Channel to the page engine
            resume_delay: Pause after each resume download, to go easy on the server
            sleep: Sleep function (tests pass a no-op)
        """
        self.transport = transport
        self.resume_delay = resume_delay
        self.sleep = sleep
        self.stop_requested = threading.Event()
        self._in_flight = threading.Lock()

    def request_stop(self):
        logger.info("Stop requested; finishing the current item")
        self.stop_requested.set()

    def reset(self):
        self.stop_requested.clear()

    def send(self, request: MessageRequest) -> MessageResponse:
        if not self._in_flight.acquire(blocking=False):
            raise ActionInFlightError(f"Cannot send {request.action}: another action is in flight")
        try:
            return self.transport.send(request)
        finally:
            self._in_flight.release()

    def greet_all(self, geeks: List[Geek], session_id: Optional[str] = None,
                  on_update: Optional[UpdateCallback] = None) -> List[Geek]:
        updated = [geek.model_copy() for geek in geeks]

        for index, geek in enumerate(updated):
            if self.stop_requested.is_set():
                logger.info("Greeting stopped by user")
                break

            logger.info(f"Processing candidate {index + 1}/{len(updated)}: {geek.name}")
            try:
                response = self.send(MessageRequest(action=DO_GREETING, index=index, session_id=session_id))
                if response.success and response.geek is not None:
                    updated[index] = response.geek
                    logger.info(f"Candidate {geek.name}: {response.geek.status}")
                else:
                    logger.error(f"Greeting {geek.name} failed: {response.error}")
                    geek.status = STATUS_FAILED
            except TransportError as e:
                logger.error(f"Sending greeting for {geek.name} failed: {e}")
                geek.status = STATUS_FAILED

            if on_update:
                on_update(snapshot(updated))

        return updated

    def download_resumes(self, users: List[Geek], session_id: Optional[str] = None,
                         on_update: Optional[UpdateCallback] = None) -> DownloadSummary:
        updated = [user.model_copy() for user in users]
        stopped = False

        for index, user in enumerate(updated):
            if self.stop_requested.is_set():
                logger.info("Resume download stopped by user")
                stopped = True
                break

            logger.info(f"Downloading resume {index + 1}/{len(updated)}: {user.name}")
            try:
                response = self.send(MessageRequest(action=DO_DOWNLOAD_RESUME, index=index, session_id=session_id))
                if response.success:
                    user.status = STATUS_RESUME_DOWNLOADED
                    logger.info(f"Triggered resume download for {user.name}")
                else:
                    user.status = STATUS_DOWNLOAD_FAILED
                    logger.error(f"Resume download for {user.name} failed: {response.error}")
            except TransportError as e:
                user.status = STATUS_DOWNLOAD_FAILED
                logger.error(f"Sending resume download for {user.name} failed: {e}")

            if on_update:
                on_update(snapshot(updated))

            self.sleep(self.resume_delay)

        succeeded = sum(1 for u in updated if u.status == STATUS_RESUME_DOWNLOADED)
        failed = sum(1 for u in updated if u.status == STATUS_DOWNLOAD_FAILED)
        logger.info(f"Resume downloads: {succeeded} succeeded, {failed} failed")
        return DownloadSummary(updated, succeeded, failed, stopped)
