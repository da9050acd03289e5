#!/usr/bin/env python3
"""
Shared configuration for the BOSS recruit assistant.

Values come from the environment (optionally a local .env file).
"""

import os
import sys
import json
import logging
from typing import List, Dict, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

BOSS_BASE_URL = os.getenv("BOSS_BASE_URL", "https://www.zhipin.com").rstrip("/")
RECOMMEND_URL = f"{BOSS_BASE_URL}/web/chat/recommend"
CHAT_URL = f"{BOSS_BASE_URL}/web/chat/index"
LOGIN_STATE_URL = f"{BOSS_BASE_URL}/wapi/zpblock/vip/state"
COOKIE_DOMAIN = os.getenv("BOSS_COOKIE_DOMAIN", ".zhipin.com")

DEFAULT_FILTER_KEYWORDS = os.getenv("FILTER_KEYWORDS", "Java")
RESUME_DIR = os.getenv("RESUME_DIR", "resumes")

# Page engine server (owns the browser)
ENGINE_HOST = os.getenv("ENGINE_HOST", "127.0.0.1")
ENGINE_PORT = int(os.getenv("ENGINE_PORT", "8001"))
ENGINE_URL = os.getenv("ENGINE_URL", f"http://{ENGINE_HOST}:{ENGINE_PORT}")

# Controller API server
API_PORT = int(os.getenv("API_PORT", "8000"))

# No timeout by default: a page action may legitimately take a while
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "0")) or None

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def use_headless() -> bool:
    return os.getenv("HEADLESS", "false").lower() == "true"


def load_cookies_from_env() -> Optional[List[Dict]]:
    """Parse the BOSS_COOKIES environment variable (a JSON list of cookies)."""
    raw = os.getenv("BOSS_COOKIES")
    if not raw:
        return None
    try:
        cookies = json.loads(raw)
    except json.JSONDecodeError:
        logging.warning("Failed to parse BOSS_COOKIES environment variable")
        return None
    if not isinstance(cookies, list):
        logging.warning("BOSS_COOKIES must be a JSON list of cookie objects")
        return None
    return cookies


def cors_origins() -> List[str]:
    origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    if os.getenv("CORS_ORIGINS"):
        origins.extend(origin.strip() for origin in os.getenv("CORS_ORIGINS").split(",") if origin.strip())
    return origins


def setup_logging(log_file: str, level: int = logging.INFO):
    """Configure root logging to a file and stdout."""
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout)
        ]
    )
