from __future__ import annotations

import json
import os
import time

_SESSION_ID = "estimate-session"


def event_log_path() -> str:
    return str(os.environ.get("PAINT_ESTIMATE_EVENT_LOG", "")).strip()


def log_event(*, hypothesis_id: str, location: str, message: str, data: dict) -> None:
    """
    Append one JSON line to the event log when PAINT_ESTIMATE_EVENT_LOG is set.

    The timestamp only lives in the log line; nothing read back by the engine depends on it.
    """
    path = event_log_path()
    if not path:
        return
    try:
        payload = {
            "sessionId": _SESSION_ID,
            "runId": str(os.environ.get("PAINT_ESTIMATE_RUN_ID", "")).strip() or "default",
            "hypothesisId": hypothesis_id,
            "location": location,
            "message": message,
            "data": data,
            "timestamp": int(time.time() * 1000),
        }
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(payload, default=str) + "\n")
    except Exception:
        # Never let logging break a calculation.
        pass
