#!/usr/bin/env python3
"""
BOSS Zhipin Browser Session

Wraps the Selenium Chrome session the page engine drives: driver setup,
authentication cookies, the login probe, navigation, iframe switching and
the small DOM probing helpers the discovery and action modules share.
"""

import time
import random
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional, Dict, Any

import requests
from selenium import webdriver
from selenium.webdriver.common.by import By
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.chrome.options import Options
from selenium.common.exceptions import WebDriverException
from webdriver_manager.chrome import ChromeDriverManager

import recruit_config

logger = logging.getLogger(__name__)

RECOMMEND_FRAME = "recommendFrame"

SCROLL_TO_BOTTOM_SCRIPT = """
var doc = document.documentElement;
var height = doc.scrollHeight || document.body.scrollHeight;
window.scrollTo({top: height, behavior: 'smooth'});
return height;
"""


class LoginStatus:
    def __init__(self, is_logged_in: bool, data: Any = None, error: Optional[str] = None):
        self.is_logged_in = is_logged_in
        self.data = data
        self.error = error


class BossBrowser:
    """Selenium session on the recruiting site."""

    def __init__(self, download_dir: str = recruit_config.RESUME_DIR, cookies: Optional[List[Dict]] = None,
                 driver=None, sleep=time.sleep):
        """
        Initialize the browser session.

        Args:
            download_dir: Directory Chrome saves downloaded resumes to
            cookies: Optional list of cookies to load into browser (for authentication)
            driver: An already created WebDriver; skips setup_driver()
            sleep: Sleep function used for pacing delays
        """
        self.download_dir = Path(download_dir)
        self.cookies = cookies
        self.driver = driver
        self.sleep = sleep
        self.http = requests.Session()
        self.http.headers.update({'Accept': 'application/json'})

    def setup_driver(self):
        """Set up Chrome WebDriver with download preferences."""
        self.download_dir.mkdir(parents=True, exist_ok=True)
        chrome_options = Options()

        download_dir = str(self.download_dir.absolute())
        logger.info(f"Configuring download directory: {download_dir}")

        prefs = {
            "download.default_directory": download_dir,
            "download.prompt_for_download": False,
            "download.directory_upgrade": True,
            "safebrowsing.enabled": True,
            "profile.default_content_settings.popups": 0,
            "profile.content_settings.exceptions.automatic_downloads.*.setting": 1
        }
        chrome_options.add_experimental_option("prefs", prefs)
        chrome_options.add_experimental_option("excludeSwitches", ["enable-automation"])
        chrome_options.add_experimental_option('useAutomationExtension', False)

        if recruit_config.use_headless():
            chrome_options.add_argument("--headless=new")
            logger.info("Running in headless mode")
        else:
            logger.info("Running in non-headless mode (user can login if needed)")

        chrome_options.add_argument("--no-sandbox")
        chrome_options.add_argument("--disable-dev-shm-usage")
        chrome_options.add_argument("--disable-gpu")
        chrome_options.add_argument("--disable-blink-features=AutomationControlled")

        try:
            service = Service(ChromeDriverManager().install())
            self.driver = webdriver.Chrome(service=service, options=chrome_options)
            self.driver.maximize_window()
            logger.info("Chrome WebDriver initialized successfully")

            if self.cookies:
                self.load_cookies()
        except Exception as e:
            logger.error(f"Failed to initialize WebDriver: {e}")
            raise

    def ensure_driver(self):
        if self.driver is None:
            self.setup_driver()
        return self.driver

    def load_cookies(self):
        """Load cookies into the browser for authentication."""
        if not self.cookies:
            return

        logger.info("Loading authentication cookies...")
        # Cookies can only be set for the domain currently loaded
        self.driver.get(recruit_config.BOSS_BASE_URL)
        self.sleep(2)

        loaded = 0
        for cookie in self.cookies:
            if 'name' not in cookie or 'value' not in cookie:
                continue
            cookie_to_add = {
                'name': cookie['name'],
                'value': cookie['value'],
                'domain': cookie.get('domain', recruit_config.COOKIE_DOMAIN),
                'path': cookie.get('path', '/'),
            }
            if 'secure' in cookie:
                cookie_to_add['secure'] = cookie['secure']
            if 'httpOnly' in cookie:
                cookie_to_add['httpOnly'] = cookie['httpOnly']
            try:
                self.driver.add_cookie(cookie_to_add)
                loaded += 1
            except WebDriverException as e:
                logger.warning(f"Failed to add cookie {cookie.get('name', 'unknown')}: {e}")

        logger.info(f"Successfully loaded {loaded} cookies")

    def check_login_status(self) -> LoginStatus:
        """
        Ask the site's VIP state endpoint whether the browser session is logged in.

        The endpoint answers code 0 for an authenticated session.
        """
        driver = self.ensure_driver()
        cookies = {c['name']: c['value'] for c in driver.get_cookies()}
        try:
            response = self.http.get(recruit_config.LOGIN_STATE_URL, cookies=cookies, timeout=15)
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error checking login status: {e}")
            return LoginStatus(False, error=str(e))

        is_logged_in = isinstance(data, dict) and data.get("code") == 0
        logger.info(f"Login status: {'logged in' if is_logged_in else 'not logged in'}")
        return LoginStatus(is_logged_in, data=data)

    def open_page(self, url: str, settle: float = 3.0) -> str:
        """Navigate to url unless the browser is already there."""
        driver = self.ensure_driver()
        if driver.current_url != url:
            logger.info(f"Navigating to: {url}")
            driver.get(url)
            self.sleep(settle)
        return driver.current_url

    def random_delay(self, min_s: float, max_s: float):
        delay = random.uniform(min_s, max_s)
        logger.debug(f"Waiting {delay:.2f}s")
        self.sleep(delay)

    @contextmanager
    def in_frame(self, frame_name: Optional[str]):
        """
        Switch into the named iframe for the duration of the block.

        Yields False (without switching) when the iframe is not on the page.
        A frame_name of None means the top-level document.
        """
        driver = self.ensure_driver()
        if frame_name is None:
            yield True
            return
        frame = self.probe(driver, f'iframe[name="{frame_name}"]')
        if frame is None:
            logger.info(f"iframe {frame_name} not found")
            yield False
            return
        driver.switch_to.frame(frame)
        try:
            yield True
        finally:
            driver.switch_to.default_content()

    def find_all(self, selector: str, root=None) -> List:
        root = root if root is not None else self.ensure_driver()
        return root.find_elements(By.CSS_SELECTOR, selector)

    def probe(self, root, selector: str):
        """First element matching selector under root, or None."""
        elements = root.find_elements(By.CSS_SELECTOR, selector)
        return elements[0] if elements else None

    def scroll_to_bottom(self) -> int:
        """Scroll the current document to its bottom, returning the scroll height."""
        return self.driver.execute_script(SCROLL_TO_BOTTOM_SCRIPT)

    def scroll_to_center(self, element):
        self.driver.execute_script(
            "arguments[0].scrollIntoView({block: 'center', behavior: 'smooth'});", element
        )

    def focus_center(self, element):
        """Scroll element to the middle of its viewport, then focus it."""
        if element is None:
            return
        self.scroll_to_center(element)
        self.random_delay(0.3, 1.0)
        self.driver.execute_script("arguments[0].focus();", element)

    def close(self):
        if self.driver:
            logger.info("Closing browser...")
            try:
                self.driver.quit()
            finally:
                self.driver = None


def text_of(element) -> str:
    """Trimmed textContent of element ('' for None)."""
    if element is None:
        return ""
    return (element.get_attribute("textContent") or "").strip()


def has_class(element, class_name: str) -> bool:
    classes = element.get_attribute("class") or ""
    return class_name in classes.split()
