#!/usr/bin/env python3
"""
FastAPI Backend Server for the BOSS Recruit Assistant

Provides REST API endpoints to start, monitor, and stop greeting and
resume-download runs. Only one run drives the page at a time.
"""

import json
import uuid
import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, BackgroundTasks
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

import recruit_config
from controller import LoginRequiredError, RecruitController
from messages import (
    STATUS_DISABLED, STATUS_DOWNLOAD_FAILED, STATUS_FAILED, STATUS_GREETED, STATUS_RESUME_DOWNLOADED, Geek,
)
from transport import HttpTransport

logger = logging.getLogger(__name__)

app = FastAPI(title="BOSS Recruit Assistant API")

allowed_origins = recruit_config.cors_origins()
logger.info(f"[CORS] Configured allowed origins: {allowed_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"],
    max_age=3600,
)

# In-memory store for run state
runs: Dict[str, Dict] = {}
active_controllers: Dict[str, RecruitController] = {}

# Loggers whose records are mirrored into the run's log list
RUN_LOGGERS = ("controller", "sequencer")


class RunStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    LOGIN_REQUIRED = "login_required"


ACTIVE_STATUSES = (RunStatus.PENDING, RunStatus.IN_PROGRESS)
FINAL_STATUSES = (RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED, RunStatus.LOGIN_REQUIRED)
PROCESSED_STATUSES = (
    STATUS_GREETED, STATUS_DISABLED, STATUS_FAILED, STATUS_RESUME_DOWNLOADED, STATUS_DOWNLOAD_FAILED,
)


class StartRunRequest(BaseModel):
    filter_keywords: Optional[str] = None


class StartRunResponse(BaseModel):
    run_id: str
    kind: str
    status: str


def create_controller() -> RecruitController:
    return RecruitController(HttpTransport(recruit_config.ENGINE_URL), download_dir=recruit_config.RESUME_DIR)


class RunLogHandler(logging.Handler):
    """Keeps the last 50 log records of a run in its state dict."""

    def __init__(self, run_state: Dict):
        super().__init__()
        self.run_state = run_state

    def emit(self, record):
        message = record.getMessage()
        level = record.levelname.lower()
        log_type = 'info'
        if level == 'error':
            log_type = 'error'
        elif level == 'warning':
            log_type = 'warning'
        self.run_state["logs"] = (self.run_state["logs"] + [{
            "timestamp": datetime.now().strftime('%H:%M:%S'),
            "message": message,
            "type": log_type,
        }])[-50:]


def update_entities(run_state: Dict, entities: List[Geek]):
    run_state["entities"] = [entity.to_wire() for entity in entities]
    run_state["total"] = len(entities)
    run_state["current"] = sum(1 for entity in entities if entity.status in PROCESSED_STATUSES)
    if run_state["total"]:
        run_state["percentage"] = round(run_state["current"] / run_state["total"] * 100)


async def run_automation(run_id: str, kind: str, filter_keywords: str):
    """
    Execute one run in the thread pool and record its outcome in the runs dict.
    """
    run_state = runs[run_id]
    if run_state["status"] == RunStatus.CANCELLED:
        logger.info(f"Run {run_id} was stopped before it started")
        return
    run_state["status"] = RunStatus.IN_PROGRESS
    run_state["started_at"] = datetime.now().isoformat()

    controller = create_controller()
    # Stops arriving from here on must reach this run
    controller.sequencer.reset()
    active_controllers[run_id] = controller

    def execute():
        handler = RunLogHandler(run_state)
        run_loggers = [logging.getLogger(name) for name in RUN_LOGGERS]
        for run_logger in run_loggers:
            run_logger.addHandler(handler)

        def on_update(entities):
            update_entities(run_state, entities)

        try:
            if kind == "greet":
                result = controller.greet_candidates(filter_keywords, on_update=on_update)
                update_entities(run_state, result.geeks)
                run_state["stats"] = {
                    "greeted": sum(1 for g in result.geeks if g.status == STATUS_GREETED),
                    "disabled": sum(1 for g in result.geeks if g.status == STATUS_DISABLED),
                    "failed": sum(1 for g in result.geeks if g.status == STATUS_FAILED),
                    "discovery": result.outcome,
                }
            else:
                summary = controller.download_chat_resumes(filter_keywords, on_update=on_update)
                update_entities(run_state, summary.users)
                run_state["stats"] = {"succeeded": summary.succeeded, "failed": summary.failed}

            if controller.sequencer.stop_requested.is_set():
                run_state["status"] = RunStatus.CANCELLED
            else:
                run_state["status"] = RunStatus.COMPLETED
        except LoginRequiredError as e:
            run_state["status"] = RunStatus.LOGIN_REQUIRED
            run_state["error"] = str(e)
            run_state["message"] = "Login required. Please log in to BOSS Zhipin in the engine browser."
        except Exception as e:
            logger.exception(f"Run {run_id} failed")
            run_state["status"] = RunStatus.FAILED
            run_state["error"] = str(e)
        finally:
            run_state["completed_at"] = datetime.now().isoformat()
            for run_logger in run_loggers:
                run_logger.removeHandler(handler)

    loop = asyncio.get_running_loop()
    try:
        await loop.run_in_executor(None, execute)
    finally:
        active_controllers.pop(run_id, None)


def start_run(kind: str, request: StartRunRequest, background_tasks: BackgroundTasks) -> StartRunResponse:
    if any(state["status"] in ACTIVE_STATUSES for state in runs.values()):
        raise HTTPException(status_code=409, detail="Another run is already driving the page")

    filter_keywords = (request.filter_keywords or "").strip() or recruit_config.DEFAULT_FILTER_KEYWORDS
    run_id = str(uuid.uuid4())
    runs[run_id] = {
        "run_id": run_id,
        "kind": kind,
        "filter_keywords": filter_keywords,
        "status": RunStatus.PENDING,
        "created_at": datetime.now().isoformat(),
        "current": 0,
        "total": 0,
        "percentage": 0,
        "message": "Initializing run...",
        "entities": [],
        "logs": [],
    }

    background_tasks.add_task(run_automation, run_id, kind, filter_keywords)
    return StartRunResponse(run_id=run_id, kind=kind, status="started")


@app.post("/api/runs/greet", response_model=StartRunResponse)
async def start_greeting(request: StartRunRequest, background_tasks: BackgroundTasks):
    """Discover recommended candidates and greet the matching ones."""
    return start_run("greet", request, background_tasks)


@app.post("/api/runs/resumes", response_model=StartRunResponse)
async def start_resume_download(request: StartRunRequest, background_tasks: BackgroundTasks):
    """Request and download resumes from chat users with unread messages."""
    return start_run("resumes", request, background_tasks)


def progress_payload(state: Dict) -> Dict:
    return {
        "current": state.get("current", 0),
        "total": state.get("total", 0),
        "percentage": state.get("percentage", 0),
        "message": state.get("message", ""),
        "status": state["status"],
        "entities": state.get("entities", []),
        "logs": state.get("logs", []),
    }


@app.get("/api/runs/{run_id}/progress")
async def get_run_progress(run_id: str):
    """Stream run progress via Server-Sent Events (SSE)."""
    if run_id not in runs:
        raise HTTPException(status_code=404, detail="Run not found")

    async def event_generator():
        while True:
            state = runs.get(run_id)
            if not state:
                yield f"data: {json.dumps({'status': 'not_found', 'message': 'Run not found'})}\n\n"
                break

            payload = progress_payload(state)
            if state["status"] in FINAL_STATUSES:
                payload["stats"] = state.get("stats", {})
                payload["error"] = state.get("error")
                yield f"data: {json.dumps(payload)}\n\n"
                break

            yield f"data: {json.dumps(payload)}\n\n"
            await asyncio.sleep(1)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        }
    )


@app.get("/api/runs/{run_id}")
async def get_run_results(run_id: str):
    """Get run results."""
    if run_id not in runs:
        raise HTTPException(status_code=404, detail="Run not found")

    state = runs[run_id]
    duration = 0
    if "started_at" in state and "completed_at" in state:
        start = datetime.fromisoformat(state["started_at"])
        end = datetime.fromisoformat(state["completed_at"])
        duration = int((end - start).total_seconds())

    return {
        "run_id": run_id,
        "kind": state["kind"],
        "status": state["status"],
        "entities": state.get("entities", []),
        "stats": state.get("stats", {}),
        "error": state.get("error"),
        "duration": duration,
        "created_at": state["created_at"],
        "completed_at": state.get("completed_at"),
    }


@app.delete("/api/runs/{run_id}")
async def stop_run(run_id: str):
    """Stop a run after the item currently on the page."""
    if run_id not in runs:
        return {"message": "Run not found or already finished", "run_id": run_id}

    state = runs[run_id]
    if state["status"] not in ACTIVE_STATUSES:
        return {"message": f"Run already {state['status']}", "run_id": run_id, "status": state["status"]}

    controller = active_controllers.get(run_id)
    if controller:
        controller.stop()
    else:
        # Not started yet
        state["status"] = RunStatus.CANCELLED
        state["completed_at"] = datetime.now().isoformat()

    state["message"] = "Stopping after the current item..."
    return {"message": "Stop requested", "run_id": run_id, "status": "stopping"}


if __name__ == "__main__":
    import uvicorn

    recruit_config.setup_logging('api_server.log')
    uvicorn.run(app, host="0.0.0.0", port=recruit_config.API_PORT)
