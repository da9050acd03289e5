"""
Per-item page actions: greeting a candidate and the resume request sequence.

Both actions address an entity by its index in the current discovery
session. The resume sequence runs against whatever chat window the click
opens, so each of its phases probes the live document and skips itself when
the element it needs is not there.
"""

import logging
from typing import Callable, List, Optional, Tuple

from selenium.common.exceptions import StaleElementReferenceException, WebDriverException

from boss_browser import BossBrowser, has_class, text_of
from discovery_session import DiscoverySession
from messages import Geek, PhaseResult, STATUS_DISABLED, STATUS_FAILED, STATUS_GREETED

logger = logging.getLogger(__name__)

GREET_DELAY = (1.0, 5.0)
PHASE_DELAY = (0.5, 3.0)

RESUME_PROMPTS = (
    "对方想发送加密附件简历给您，您是否同意",
    "对方想发送附件简历给您，您是否同意",
)
REQUEST_RESUME_LABEL = "求简历"
CONFIRM_PROMPTS = ("确定向牛人请求简历", "确定向牛人索取简历")
CONFIRM_LABEL = "确定"
PREVIEW_ATTACHMENT_LABEL = "点击预览附件简历"
DOWNLOAD_BUTTON_POSITION = 2

# Phase outcomes
DONE = "done"
ABSENT = "absent"
DISABLED = "disabled"
ERROR = "error"

# Request phase states
ACCEPTED_PROMPT = "accepted_prompt"
PROMPT_DISABLED = "prompt_disabled"
REQUESTED_CONFIRMED = "requested_confirmed"
REQUESTED = "requested"
SKIPPED = "skipped"


def greet(browser: BossBrowser, session: DiscoverySession, index: int,
          session_id: Optional[str] = None) -> Geek:
    """Click the greet button of one discovered candidate and record the result on it."""
    geek, button = session.lookup(index, session_id)
    browser.random_delay(*GREET_DELAY)

    with browser.in_frame(session.frame_name) as found:
        if not found:
            geek.status = STATUS_FAILED
            logger.warning(f"Frame {session.frame_name} is gone; cannot greet {geek.name}")
            return geek
        try:
            browser.focus_center(button)
            if button is None or button.tag_name.lower() != "button":
                geek.status = STATUS_FAILED
                logger.warning(f"Greet handle for {geek.name} is not a button")
            elif not button.is_enabled():
                geek.status = STATUS_DISABLED
                logger.info(f"Greet button for {geek.name} is no longer available")
            else:
                button.click()
                geek.status = STATUS_GREETED
                logger.info(f"Greeted candidate {geek.name}")
        except StaleElementReferenceException:
            geek.status = STATUS_FAILED
            logger.warning(f"Greet button for {geek.name} went stale; the list was re-rendered")
    return geek


class ResumeOutcome:
    """Phase results of one resume request, in the order the phases ran."""

    def __init__(self, index: int, phases: List[PhaseResult]):
        self.index = index
        self.phases = phases

    def ran(self, name: str) -> bool:
        return any(p.name == name and p.outcome == DONE for p in self.phases)


def _message_items(browser: BossBrowser) -> List:
    return browser.find_all("div.message-item")


def request_phase(browser: BossBrowser) -> Tuple[str, str]:
    # An incoming attachment offer takes precedence over asking for one
    for item in _message_items(browser):
        title = text_of(browser.probe(item, ".message-card-top-title"))
        if not any(prompt in title for prompt in RESUME_PROMPTS):
            continue
        buttons = browser.find_all(".message-card-buttons .card-btn", root=item)
        if not buttons:
            return ABSENT, SKIPPED
        accept = buttons[-1]
        if has_class(accept, "disabled"):
            logger.info("Resume offer already handled")
            return DISABLED, PROMPT_DISABLED
        accept.click()
        logger.info("Accepted resume offer")
        return DONE, ACCEPTED_PROMPT

    for button in browser.find_all("span.operate-btn"):
        if REQUEST_RESUME_LABEL not in text_of(button):
            continue
        button.click()
        browser.random_delay(0.5, 1.0)

        tooltip = browser.probe(browser.driver, "div.exchange-tooltip")
        if tooltip is None:
            logger.info("Resume requested, no confirmation shown")
            return DONE, REQUESTED
        if any(prompt in text_of(tooltip) for prompt in CONFIRM_PROMPTS):
            confirm = browser.probe(tooltip, "span.boss-btn-primary.boss-btn")
            if confirm is not None and CONFIRM_LABEL in text_of(confirm):
                confirm.click()
                browser.random_delay(0.5, 1.0)
                logger.info("Resume request confirmed")
                return DONE, REQUESTED_CONFIRMED
        return DONE, REQUESTED

    logger.info("No resume offer or request button found")
    return ABSENT, SKIPPED


def open_attachment_phase(browser: BossBrowser) -> Tuple[str, Optional[str]]:
    for item in _message_items(browser):
        for button in browser.find_all("span.card-btn", root=item):
            if PREVIEW_ATTACHMENT_LABEL in text_of(button):
                button.click()
                return DONE, None
    return ABSENT, None


def download_phase(browser: BossBrowser) -> Tuple[str, Optional[str]]:
    group = browser.probe(browser.driver, "div.attachment-resume-btns")
    if group is None:
        return ABSENT, None
    icons = browser.find_all("div.popover.icon-content.popover-bottom", root=group)
    if len(icons) <= DOWNLOAD_BUTTON_POSITION:
        return ABSENT, f"only {len(icons)} attachment buttons"
    inner = browser.probe(icons[DOWNLOAD_BUTTON_POSITION], "span")
    if inner is None:
        return ABSENT, None
    inner.click()
    return DONE, None


def close_phase(browser: BossBrowser) -> Tuple[str, Optional[str]]:
    close_button = browser.probe(browser.driver, "div.boss-popup__close")
    if close_button is None:
        return ABSENT, None
    close_button.click()
    return DONE, None


RESUME_PHASES: List[Tuple[str, Callable[[BossBrowser], Tuple[str, Optional[str]]]]] = [
    ("request", request_phase),
    ("open_attachment", open_attachment_phase),
    ("download", download_phase),
    ("close", close_phase),
]


def run_phase(browser: BossBrowser, name: str, phase) -> PhaseResult:
    try:
        outcome, detail = phase(browser)
    except WebDriverException as e:
        logger.warning(f"Resume phase {name} failed: {e}")
        return PhaseResult(name=name, outcome=ERROR, detail=str(e))
    logger.info(f"Resume phase {name}: {outcome}{f' ({detail})' if detail else ''}")
    return PhaseResult(name=name, outcome=outcome, detail=detail)


def request_resume(browser: BossBrowser, session: DiscoverySession, index: int,
                   session_id: Optional[str] = None) -> ResumeOutcome:
    """
    Open one chat user's conversation and walk the resume pipeline.

    Phases whose elements are absent are skipped; the sequence always runs to
    the end, so the caller sees success once every phase was attempted.
    """
    user, item = session.lookup(index, session_id)
    logger.info(f"Opening conversation {index + 1}: {user.name}")

    with browser.in_frame(session.frame_name):
        browser.scroll_to_center(item)
        browser.random_delay(0.5, 1.0)
        item.click()
        browser.random_delay(1.0, 2.0)

        phases = []
        for name, phase in RESUME_PHASES:
            phases.append(run_phase(browser, name, phase))
            browser.random_delay(*PHASE_DELAY)

    return ResumeOutcome(index, phases)
