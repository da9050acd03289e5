"""Single-pass discovery of chat users with unread messages."""

import logging

from boss_browser import BossBrowser, text_of
from discovery_session import CHAT_USERS, DiscoveryResult, DiscoverySession
from keyword_filter import match_keywords, parse_keywords
from messages import Geek

logger = logging.getLogger(__name__)

USER_ITEM_SELECTOR = "div.geek-item"
FILTER_BAR_SELECTOR = "div.chat-message-filter-left"
UNREAD_LABEL = "未读"


def switch_unread_filter(browser: BossBrowser) -> bool:
    """Click the unread filter tab if the page shows one."""
    filters = browser.probe(browser.driver, FILTER_BAR_SELECTOR)
    if filters is None:
        logger.info("Message filter bar not found, scanning the list as rendered")
        return False
    for span in browser.find_all("span", root=filters):
        if UNREAD_LABEL in text_of(span):
            span.click()
            return True
    return False


def _unread_count(browser: BossBrowser, item) -> int:
    badge = browser.probe(item, ".badge-count span")
    try:
        return int(text_of(badge) or "0")
    except ValueError:
        return 0


def _title_or_text(browser: BossBrowser, item, selector: str) -> str:
    element = browser.probe(item, selector)
    if element is None:
        return ""
    return (element.get_attribute("title") or "").strip() or text_of(element)


def discover_chat_users(browser: BossBrowser, filter_keywords: str) -> DiscoveryResult:
    """
    Collect chat users with unread messages whose name, job or last message matches.

    With no keywords every unread user is returned.
    """
    session = DiscoverySession(CHAT_USERS)
    browser.ensure_driver()
    browser.random_delay(1.0, 3.0)

    switch_unread_filter(browser)
    browser.random_delay(1.0, 2.0)

    items = browser.find_all(USER_ITEM_SELECTOR)
    logger.info(f"Found {len(items)} chat user items")
    keywords = parse_keywords(filter_keywords)

    for position, item in enumerate(items):
        message_count = _unread_count(browser, item)
        if message_count <= 0:
            continue

        name = _title_or_text(browser, item, ".geek-name") or f"用户{position + 1}"
        job = _title_or_text(browser, item, ".source-job")
        message = text_of(browser.probe(item, ".push-text"))
        sent_at = text_of(browser.probe(item, ".time"))

        matched = match_keywords(f"{name} {job} {message}", keywords)
        if keywords and not matched:
            continue

        content = job
        if message:
            content += f" - {message}"
        if sent_at:
            content += f" ({sent_at})"

        session.add(Geek(
            name=name,
            content=content,
            matched_keywords=",".join(matched) if keywords else None,
            status=f"{message_count} new messages",
            message_count=message_count,
        ), item)

    logger.info(f"Filtered {len(session)} chat users with new messages")
    return DiscoveryResult.from_session(session)
