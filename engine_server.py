#!/usr/bin/env python3
"""
Page Engine Server

Hosts the browser-owning page engine behind a single message endpoint.
The controller posts one MessageRequest at a time and waits for the answer.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

import recruit_config
from boss_browser import BossBrowser
from messages import MessageRequest
from page_engine import PageEngine

logger = logging.getLogger(__name__)

engine = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if engine is not None:
        engine.browser.close()


app = FastAPI(title="BOSS Recruit Page Engine", lifespan=lifespan)


def get_engine() -> PageEngine:
    global engine
    if engine is None:
        browser = BossBrowser(recruit_config.RESUME_DIR, cookies=recruit_config.load_cookies_from_env())
        engine = PageEngine(browser)
    return engine


# Plain def: runs in the threadpool
@app.post("/api/messages")
def handle_message(request: MessageRequest):
    logger.info(f"Received {request.action}")
    response = get_engine().handle(request)
    return response.to_wire()


if __name__ == "__main__":
    import uvicorn

    recruit_config.setup_logging('engine_server.log')
    uvicorn.run(app, host=recruit_config.ENGINE_HOST, port=recruit_config.ENGINE_PORT)
