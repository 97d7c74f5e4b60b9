"""FastAPI server exposing the braille activity session to local UIs and devices."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from typing import Any

from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from framework.errors import RecordStoreError, UnknownRecordError
from framework.events import write_jsonl
from framework.serialize import json_dumps
from framework.settings import RunnerSettings
from server.schemas import CancelRequest, CursorRequest, SelectActivityRequest
from server.session import SessionRuntime

logger = logging.getLogger(__name__)

settings = RunnerSettings.from_env()
_runtime: SessionRuntime | None = None

EVENTS_FILE = "session-events.jsonl"
LOGGER_NAMES = ("framework", "pairletters", "letters", "server")


def _has_file_handler(named: logging.Logger, log_path: str) -> bool:
    return any(
        isinstance(handler, RotatingFileHandler) and handler.baseFilename == log_path for handler in named.handlers
    )


def setup_logging(config: RunnerSettings) -> None:
    """Attach a rotating file handler to the runner loggers and enable console logging."""
    os.makedirs(config.log_dir, exist_ok=True)
    log_path = os.path.abspath(config.log_dir / config.log_file)
    loggers = [logging.getLogger(name) for name in LOGGER_NAMES]
    missing = [named for named in loggers if not _has_file_handler(named, log_path)]
    for named in loggers:
        named.setLevel(logging.INFO)
    if missing:
        file_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3)
        file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        for named in missing:
            named.addHandler(file_handler)
    logging.basicConfig(level=logging.INFO)


def get_runtime() -> SessionRuntime:
    """Return the process-wide runtime, loading records on first use."""
    global _runtime
    if _runtime is None:
        _runtime = SessionRuntime.from_settings(settings)
    return _runtime


def set_runtime(runtime: SessionRuntime | None) -> None:
    global _runtime
    _runtime = runtime


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings)
    yield
    if _runtime is not None:
        await _runtime.controller.shutdown()
        write_jsonl(settings.log_dir / EVENTS_FILE, _runtime.controller.events, append=True)


app = FastAPI(title="Braille Activity Runner", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
def health() -> dict[str, str]:
    """Healthcheck endpoint."""
    return {"status": "ok"}


def _runtime_or_error() -> SessionRuntime:
    try:
        return get_runtime()
    except RecordStoreError as exc:
        raise HTTPException(status_code=503, detail=exc.to_dict()) from exc


@app.get("/api/session")
def get_session() -> dict[str, Any]:
    """Return the current selection, run state and display line."""
    return _runtime_or_error().view()


@app.get("/api/records")
def get_records() -> list[dict[str, Any]]:
    """List records with their activities."""
    return _runtime_or_error().records_view()


@app.post("/api/session/select")
async def select_activity(request: SelectActivityRequest) -> dict[str, Any]:
    """Select a record/activity; a running activity is stopped first."""
    runtime = _runtime_or_error()
    try:
        await runtime.controller.select_activity(request.record_index, request.activity_index)
    except UnknownRecordError as exc:
        raise HTTPException(status_code=400, detail=exc.to_dict()) from exc
    return runtime.view()


@app.post("/api/session/start")
async def start_session() -> dict[str, Any]:
    """Start the selected activity in the background."""
    runtime = _runtime_or_error()
    runtime.controller.launch()
    return runtime.view()


@app.post("/api/session/cancel")
async def cancel_session(request: CancelRequest) -> dict[str, Any]:
    """Stop whatever runs and reset the line to idle."""
    runtime = _runtime_or_error()
    await runtime.controller.cancel(request.reason)
    return runtime.view()


@app.post("/api/session/next")
async def next_record() -> dict[str, Any]:
    runtime = _runtime_or_error()
    await runtime.controller.next_record()
    return runtime.view()


@app.post("/api/session/previous")
async def previous_record() -> dict[str, Any]:
    runtime = _runtime_or_error()
    await runtime.controller.previous_record()
    return runtime.view()


@app.post("/api/session/cursor")
async def cursor(request: CursorRequest) -> dict[str, Any]:
    """Resolve a raw cursor position and forward it to the running activity."""
    runtime = _runtime_or_error()
    info = runtime.controller.dispatch_cursor(request.position, source=request.source)
    payload = runtime.view()
    payload["resolved"] = None if info is None else {"index": info.index, "letter": info.letter, "word": info.word}
    return payload


@app.post("/api/session/left")
async def left_action() -> dict[str, Any]:
    runtime = _runtime_or_error()
    runtime.controller.left_action()
    return runtime.view()


@app.post("/api/session/right")
async def right_action() -> dict[str, Any]:
    runtime = _runtime_or_error()
    runtime.controller.right_action()
    return runtime.view()


@app.get("/api/session/events", response_model=None)
def get_events(format: str = Query(default="array"), run_token: int | None = Query(default=None)) -> Any:
    """Return the session event log as array (default) or JSONL text, optionally for one run."""
    events = _runtime_or_error().events(run_token)
    if format == "jsonl":
        text = "\n".join(json_dumps(event) for event in events)
        return PlainTextResponse(content=text, media_type="application/jsonl")
    return events


@app.websocket("/ws/device")
async def device_socket(websocket: WebSocket) -> None:
    """Bidirectional device channel: lines and sounds out, cursor/thumb/audio events in."""
    try:
        runtime = get_runtime()
    except RecordStoreError as exc:
        logger.error("device rejected, records unavailable %s", exc.to_dict())
        await websocket.close(code=1011)
        return
    await runtime.channel.connect(websocket)
    try:
        while True:
            message = await websocket.receive_json()
            if not isinstance(message, dict):
                continue
            reply = await runtime.handle_device_message(message)
            if reply is not None:
                await websocket.send_json(reply)
    except WebSocketDisconnect:
        pass
    finally:
        runtime.channel.disconnect(websocket)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.main:app", host="0.0.0.0", port=8000, reload=True)
