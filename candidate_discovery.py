"""
Recommended-candidate discovery.

The recommendation list lives inside the ``recommendFrame`` iframe and
lazy-loads on scroll, so discovery scrolls, waits for the list to settle and
re-reads it until the page says there is nothing more or a bound is hit.
"""

import logging

from boss_browser import BossBrowser, RECOMMEND_FRAME, text_of
from discovery_session import CANDIDATES, DiscoveryOutcome, DiscoveryResult, DiscoverySession
from keyword_filter import match_keywords, parse_keywords
from messages import Geek, STATUS_PENDING

logger = logging.getLogger(__name__)

CARD_SELECTOR = "div.candidate-card-wrap"
NAME_SELECTOR = "span.name"
GREET_BUTTON_SELECTOR = "button.btn.btn-greet"
NO_MORE_SELECTOR = "span.nomore"

GREET_LABEL = "打招呼"
NO_MORE_TEXT = "没有更多了"
UNKNOWN_NAME = "未知"

MAX_CARDS = 200
MAX_SCROLL_ROUNDS = 14
SETTLE_DELAY = (1.5, 2.0)


def is_no_more(browser: BossBrowser) -> bool:
    sentinel = browser.probe(browser.driver, NO_MORE_SELECTOR)
    return sentinel is not None and NO_MORE_TEXT in text_of(sentinel)


def discover_candidates(browser: BossBrowser, filter_keywords: str,
                        max_cards: int = MAX_CARDS, max_rounds: int = MAX_SCROLL_ROUNDS) -> DiscoveryResult:
    """
    Scroll-and-collect the recommended candidates and keep the greetable ones that match.

    Args:
        browser: Browser session positioned on the recommend page
        filter_keywords: Comma-separated keywords; a card must match at least one
        max_cards: Stop scrolling once this many cards are rendered
        max_rounds: Stop scrolling after this many rounds

    Returns:
        DiscoveryResult whose session holds the greet buttons, index-aligned
        with the candidates. NO_SCROLL_ROOT when the iframe is missing.
    """
    session = DiscoverySession(CANDIDATES, frame_name=RECOMMEND_FRAME)
    keywords = parse_keywords(filter_keywords)
    browser.random_delay(1.0, 2.0)

    with browser.in_frame(RECOMMEND_FRAME) as found:
        if not found:
            logger.warning("Recommend iframe not found, nothing to discover")
            return DiscoveryResult(session, DiscoveryOutcome.NO_SCROLL_ROOT)

        cards = []
        rounds = 0
        while True:
            height = browser.scroll_to_bottom()
            logger.debug(f"Scrolled recommend list to bottom, height: {height}px")
            browser.random_delay(*SETTLE_DELAY)

            cards = browser.find_all(CARD_SELECTOR)
            rounds += 1
            logger.info(f"Round {rounds}: found {len(cards)} candidate cards")

            if is_no_more(browser):
                logger.info("Reached the end of the recommend list")
                break
            if len(cards) >= max_cards or rounds >= max_rounds:
                break

        cards = cards[:max_cards]
        for card in cards:
            card_text = text_of(card)
            if not card_text:
                continue

            greet_button = browser.probe(card, GREET_BUTTON_SELECTOR)
            if text_of(greet_button) != GREET_LABEL:
                continue

            matched = match_keywords(card_text, keywords)
            if not matched:
                continue

            name = text_of(browser.probe(card, NAME_SELECTOR)) or UNKNOWN_NAME
            session.add(Geek(
                name=name,
                content=card_text,
                matched_keywords=",".join(matched),
                status=STATUS_PENDING,
            ), greet_button)

    logger.info(f"Discovered {len(session)} matching candidates out of {len(cards)} cards")
    return DiscoveryResult.from_session(session)
