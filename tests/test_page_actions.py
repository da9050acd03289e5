import pytest
from selenium.common.exceptions import StaleElementReferenceException, WebDriverException

import page_actions
from candidate_discovery import discover_candidates
from chat_discovery import discover_chat_users
from discovery_session import SessionIndexError, StaleSessionError
from page_actions import greet, request_resume
from conftest import (
    FakeElement, greet_button, make_browser, make_card, make_chat_page, make_chat_user, make_recommend_page,
)


def discovered_candidates(cards):
    driver, _ = make_recommend_page(cards, no_more=True)
    browser = make_browser(driver)
    return browser, discover_candidates(browser, "java").session


class TestGreet:
    def test_clicks_enabled_button(self):
        cards = [make_card("A", "java")]
        browser, session = discovered_candidates(cards)

        geek = greet(browser, session, 0)

        assert geek.status == "greeted"
        assert greet_button(cards[0]).clicks == 1
        assert session.entities[0].status == "greeted"

    def test_scrolls_to_center_and_focuses_inside_frame(self):
        cards = [make_card("A", "java")]
        browser, session = discovered_candidates(cards)

        greet(browser, session, 0)

        scripts = [script for script, args in browser.driver.scripts if args == (greet_button(cards[0]),)]
        assert any("scrollIntoView" in s for s in scripts)
        assert any("focus()" in s for s in scripts)
        assert browser.driver.current is browser.driver.document

    def test_disabled_button_is_not_clicked(self):
        cards = [make_card("A", "java")]
        browser, session = discovered_candidates(cards)
        greet_button(cards[0]).enabled = False

        geek = greet(browser, session, 0)

        assert geek.status == "disabled"
        assert greet_button(cards[0]).clicks == 0

    def test_second_greet_on_disabled_control_never_reclicks(self):
        cards = [make_card("A", "java")]
        browser, session = discovered_candidates(cards)
        button = greet_button(cards[0])

        assert greet(browser, session, 0).status == "greeted"
        button.enabled = False
        assert greet(browser, session, 0).status == "disabled"
        assert greet(browser, session, 0).status == "disabled"
        assert button.clicks == 1

    def test_non_button_handle_fails(self):
        cards = [make_card("A", "java")]
        browser, session = discovered_candidates(cards)
        session.handles[0] = FakeElement("a", "打招呼")

        assert greet(browser, session, 0).status == "failed"
        assert session.handles[0].clicks == 0

    def test_stale_handle_fails(self):
        cards = [make_card("A", "java")]
        browser, session = discovered_candidates(cards)
        greet_button(cards[0]).stale = True

        assert greet(browser, session, 0).status == "failed"

    def test_missing_frame_fails_without_clicking(self):
        cards = [make_card("A", "java")]
        browser, session = discovered_candidates(cards)
        browser.driver.document.children.clear()

        assert greet(browser, session, 0).status == "failed"
        assert greet_button(cards[0]).clicks == 0

    def test_rejects_stale_session_and_bad_index(self):
        browser, session = discovered_candidates([make_card("A", "java")])

        with pytest.raises(StaleSessionError):
            greet(browser, session, 0, session_id="an-older-session")
        with pytest.raises(SessionIndexError):
            greet(browser, session, 5)


def chat_page_with_conversation(message_items=None, operate_buttons=None, extra=None):
    users = [make_chat_user("张三", 1, job="Java")]
    driver = make_chat_page(users)
    driver.document.children["div.message-item"] = message_items or []
    driver.document.children["span.operate-btn"] = operate_buttons or []
    driver.document.children.update(extra or {})
    browser = make_browser(driver)
    session = discover_chat_users(browser, "java").session
    return browser, session, users[0]


def resume_offer(title="对方想发送加密附件简历给您，您是否同意", accept_disabled=False):
    accept = FakeElement("span", "同意", classes=("card-btn", "disabled") if accept_disabled else ("card-btn",))
    reject = FakeElement("span", "拒绝", classes=("card-btn",))
    item = FakeElement("div", title, children={
        ".message-card-top-title": [FakeElement("h3", title)],
        ".message-card-buttons .card-btn": [reject, accept],
    })
    return item, accept, reject


def attachment_group():
    icons = [FakeElement("div", children={"span": [FakeElement("span")]}) for _ in range(4)]
    group = FakeElement("div", children={"div.popover.icon-content.popover-bottom": icons})
    return group, icons


def outcomes(result):
    return {phase.name: (phase.outcome, phase.detail) for phase in result.phases}


class TestRequestResume:
    def test_accepts_pending_offer_and_runs_every_phase(self):
        offer, accept, reject = resume_offer()
        preview = FakeElement("span", "点击预览附件简历")
        preview_item = FakeElement("div", children={"span.card-btn": [preview]})
        group, icons = attachment_group()
        close = FakeElement("div")
        request_btn = FakeElement("span", "求简历")
        browser, session, item = chat_page_with_conversation(
            message_items=[offer, preview_item],
            operate_buttons=[request_btn],
            extra={"div.attachment-resume-btns": [group], "div.boss-popup__close": [close]},
        )

        result = request_resume(browser, session, 0)

        assert item.clicks == 1
        assert accept.clicks == 1 and reject.clicks == 0
        assert request_btn.clicks == 0
        assert preview.clicks == 1
        assert icons[2].children["span"][0].clicks == 1
        assert icons[0].children["span"][0].clicks == 0
        assert close.clicks == 1
        assert outcomes(result) == {
            "request": ("done", "accepted_prompt"),
            "open_attachment": ("done", None),
            "download": ("done", None),
            "close": ("done", None),
        }
        assert result.index == 0
        assert result.ran("download")

    def test_plain_attachment_offer_is_accepted(self):
        offer, accept, _ = resume_offer(title="对方想发送附件简历给您，您是否同意")
        browser, session, _ = chat_page_with_conversation(message_items=[offer])

        result = request_resume(browser, session, 0)

        assert accept.clicks == 1
        assert outcomes(result)["request"] == ("done", "accepted_prompt")

    def test_disabled_offer_stops_request_phase(self):
        offer, accept, _ = resume_offer(accept_disabled=True)
        request_btn = FakeElement("span", "求简历")
        browser, session, _ = chat_page_with_conversation(message_items=[offer], operate_buttons=[request_btn])

        result = request_resume(browser, session, 0)

        assert accept.clicks == 0
        assert request_btn.clicks == 0
        assert outcomes(result)["request"] == ("disabled", "prompt_disabled")

    def test_requests_resume_and_confirms(self):
        confirm = FakeElement("span", "确定")
        tooltip = FakeElement("div", "确定向牛人请求简历吗？", children={"span.boss-btn-primary.boss-btn": [confirm]})
        browser, session, _ = chat_page_with_conversation()

        def show_tooltip():
            browser.driver.document.children["div.exchange-tooltip"] = [tooltip]

        request_btn = FakeElement("span", "求简历", on_click=show_tooltip)
        browser.driver.document.children["span.operate-btn"] = [FakeElement("span", "换电话"), request_btn]

        result = request_resume(browser, session, 0)

        assert request_btn.clicks == 1
        assert confirm.clicks == 1
        assert outcomes(result)["request"] == ("done", "requested_confirmed")

    def test_request_without_confirmation_tooltip(self):
        request_btn = FakeElement("span", "求简历")
        browser, session, _ = chat_page_with_conversation(operate_buttons=[request_btn])

        result = request_resume(browser, session, 0)

        assert request_btn.clicks == 1
        assert outcomes(result)["request"] == ("done", "requested")

    def request_with_tooltip(self, tooltip):
        browser, session, _ = chat_page_with_conversation()

        def show_tooltip():
            browser.driver.document.children["div.exchange-tooltip"] = [tooltip]

        request_btn = FakeElement("span", "求简历", on_click=show_tooltip)
        browser.driver.document.children["span.operate-btn"] = [request_btn]
        return request_resume(browser, session, 0), request_btn

    def test_unrelated_tooltip_is_left_alone(self):
        confirm = FakeElement("span", "确定")
        tooltip = FakeElement("div", "请先与牛人沟通", children={"span.boss-btn-primary.boss-btn": [confirm]})

        result, request_btn = self.request_with_tooltip(tooltip)

        assert request_btn.clicks == 1
        assert confirm.clicks == 0
        assert outcomes(result)["request"] == ("done", "requested")

    def test_confirmation_without_confirm_button(self):
        tooltip = FakeElement("div", "确定向牛人索取简历吗？")

        result, _ = self.request_with_tooltip(tooltip)

        assert outcomes(result)["request"] == ("done", "requested")

    def test_confirmation_button_with_other_label_is_not_clicked(self):
        cancel = FakeElement("span", "取消")
        tooltip = FakeElement("div", "确定向牛人请求简历吗？", children={"span.boss-btn-primary.boss-btn": [cancel]})

        result, _ = self.request_with_tooltip(tooltip)

        assert cancel.clicks == 0
        assert outcomes(result)["request"] == ("done", "requested")

    def test_offer_without_buttons_skips_request(self):
        offer, _, _ = resume_offer()
        del offer.children[".message-card-buttons .card-btn"]
        request_btn = FakeElement("span", "求简历")
        browser, session, _ = chat_page_with_conversation(message_items=[offer], operate_buttons=[request_btn])

        result = request_resume(browser, session, 0)

        assert request_btn.clicks == 0
        assert outcomes(result)["request"] == ("absent", "skipped")

    def test_stale_chat_item_raises_before_any_phase(self):
        close = FakeElement("div")
        browser, session, item = chat_page_with_conversation(extra={"div.boss-popup__close": [close]})
        item.stale = True

        with pytest.raises(StaleElementReferenceException):
            request_resume(browser, session, 0)

        assert close.clicks == 0

    def test_absent_elements_are_skipped_and_still_succeeds(self):
        browser, session, _ = chat_page_with_conversation()

        result = request_resume(browser, session, 0)

        assert [p.outcome for p in result.phases] == ["absent", "absent", "absent", "absent"]
        assert outcomes(result)["request"] == ("absent", "skipped")
        assert not result.ran("download")

    def test_download_needs_three_icon_buttons(self):
        group, icons = attachment_group()
        group.children["div.popover.icon-content.popover-bottom"] = icons[:2]
        browser, session, _ = chat_page_with_conversation(extra={"div.attachment-resume-btns": [group]})

        result = request_resume(browser, session, 0)

        assert outcomes(result)["download"] == ("absent", "only 2 attachment buttons")

    def test_webdriver_error_in_phase_is_recorded_not_raised(self, monkeypatch):
        close = FakeElement("div")
        browser, session, _ = chat_page_with_conversation(extra={"div.boss-popup__close": [close]})

        def broken(browser):
            raise WebDriverException("element click intercepted")

        monkeypatch.setattr(page_actions, "RESUME_PHASES", [("request", broken), ("close", page_actions.close_phase)])

        result = request_resume(browser, session, 0)

        assert result.phases[0].outcome == "error"
        assert "intercepted" in result.phases[0].detail
        assert close.clicks == 1
