"""Fake WebDriver and DOM used by the page-side tests."""

from typing import Callable, Dict, List, Optional

import pytest
from selenium.common.exceptions import StaleElementReferenceException

from boss_browser import BossBrowser
from messages import Geek, MessageResponse
from transport import MessageTransport, TransportError


class FakeElement:
    def __init__(self, tag: str = "div", text: str = "", classes=(), attrs: Optional[Dict] = None,
                 children: Optional[Dict[str, List["FakeElement"]]] = None, enabled: bool = True,
                 on_click: Optional[Callable[[], None]] = None, content: Optional["FakeElement"] = None):
        self._tag = tag
        self.text = text
        self.classes = list(classes)
        self.attrs = attrs or {}
        self.children = children or {}
        self.enabled = enabled
        self.on_click = on_click
        self.content = content  # document of an iframe element
        self.stale = False
        self.clicks = 0

    @property
    def tag_name(self):
        if self.stale:
            raise StaleElementReferenceException("element is not attached to the page document")
        return self._tag

    def find_elements(self, by, selector):
        return list(self.children.get(selector, []))

    def get_attribute(self, name):
        if name == "textContent":
            return self.text
        if name == "class":
            return " ".join(self.classes)
        return self.attrs.get(name)

    def is_enabled(self):
        return self.enabled

    def click(self):
        if self.stale:
            raise StaleElementReferenceException("element is not attached to the page document")
        self.clicks += 1
        if self.on_click:
            self.on_click()


class FakeSwitchTo:
    def __init__(self, driver):
        self.driver = driver

    def frame(self, frame_element):
        self.driver.current = frame_element.content

    def default_content(self):
        self.driver.current = self.driver.document


class FakeDriver:
    def __init__(self, document: FakeElement, current_url: str = "about:blank", cookies=None):
        self.document = document
        self.current = document
        self.current_url = current_url
        self.cookies = cookies or []
        self.switch_to = FakeSwitchTo(self)
        self.scripts = []
        self.visited = []
        self.scroll_count = 0
        self.on_scroll: Optional[Callable[[], None]] = None

    def find_elements(self, by, selector):
        return self.current.find_elements(by, selector)

    def execute_script(self, script, *args):
        self.scripts.append((script, args))
        if "window.scrollTo" in script:
            self.scroll_count += 1
            if self.on_scroll:
                self.on_scroll()
            return 1000
        return None

    def get(self, url):
        self.visited.append(url)
        self.current_url = url

    def get_cookies(self):
        return self.cookies

    def quit(self):
        pass


def make_card(name: str, text: str, greet_label: str = "打招呼", enabled: bool = True) -> FakeElement:
    button = FakeElement("button", greet_label, classes=("btn", "btn-greet"), enabled=enabled)
    return FakeElement(
        "div",
        f"{name} {text} {greet_label}",
        classes=("candidate-card-wrap",),
        children={
            "span.name": [FakeElement("span", name)],
            "button.btn.btn-greet": [button],
        },
    )


def greet_button(card: FakeElement) -> FakeElement:
    return card.children["button.btn.btn-greet"][0]


def make_recommend_page(cards: List[FakeElement], no_more: bool = False):
    """Top document holding the recommendFrame iframe; returns (driver, frame document)."""
    frame_doc = FakeElement("html", children={"div.candidate-card-wrap": list(cards)})
    if no_more:
        frame_doc.children["span.nomore"] = [FakeElement("span", "没有更多了")]
    iframe = FakeElement("iframe", attrs={"name": "recommendFrame"}, content=frame_doc)
    document = FakeElement("html", children={'iframe[name="recommendFrame"]': [iframe]})
    return FakeDriver(document, current_url="https://www.zhipin.com/web/chat/recommend"), frame_doc


def make_chat_user(name: str, count, job: str = "", message: str = "", sent_at: str = "") -> FakeElement:
    children = {
        ".geek-name": [FakeElement("span", name, attrs={"title": name})],
        ".source-job": [FakeElement("span", job, attrs={"title": job})],
        ".push-text": [FakeElement("span", message)],
        ".time": [FakeElement("span", sent_at)],
    }
    if count is not None:
        children[".badge-count span"] = [FakeElement("span", str(count))]
    return FakeElement("div", f"{name} {job} {message}", classes=("geek-item",), children=children)


def make_chat_page(users: List[FakeElement], with_filter: bool = True):
    document = FakeElement("html", children={"div.geek-item": list(users)})
    if with_filter:
        unread = FakeElement("span", "未读")
        bar = FakeElement("div", children={"span": [FakeElement("span", "全部"), unread]})
        document.children["div.chat-message-filter-left"] = [bar]
    return FakeDriver(document, current_url="https://www.zhipin.com/web/chat/index")


def make_browser(driver: FakeDriver, tmp_path=None) -> BossBrowser:
    return BossBrowser(download_dir=str(tmp_path or "resumes"), driver=driver, sleep=lambda seconds: None)


@pytest.fixture
def no_sleep():
    return lambda seconds: None


class RecordingTransport(MessageTransport):
    """Scripted engine: records every request and answers from canned lists."""

    def __init__(self, logged_in=True, geeks=None, users=None, fail_index=None):
        self.logged_in = logged_in
        self.geeks = geeks or []
        self.users = users or []
        self.fail_index = fail_index
        self.requests = []

    def send(self, request):
        self.requests.append(request)
        if request.action == "openPage":
            return MessageResponse(success=True, url=request.url)
        if request.action == "checkLoginStatus":
            return MessageResponse(is_logged_in=self.logged_in)
        if request.action == "filterGeeks":
            return MessageResponse(geeks=self.geeks, session_id="s1", outcome="found" if self.geeks else "empty")
        if request.action == "filterChatUsers":
            return MessageResponse(users=self.users, session_id="s2", outcome="found")
        if request.index == self.fail_index:
            raise TransportError("receiving end does not exist")
        if request.action == "doGreeting":
            geek = self.geeks[request.index].model_copy(update={"status": "greeted"})
            return MessageResponse(success=True, geek=geek)
        return MessageResponse(success=True, index=request.index)

    def actions(self):
        return [r.action for r in self.requests]


def candidates(n):
    return [Geek(name=f"G{i}", content="java", matched_keywords="java", status="pending") for i in range(n)]
