"""Console logging for frame loop hosts.

Frame loop modules log `event key=value ...` messages, for example
`frame_loop_start mode=timer_paced framerate=60.0 interpolation=False backend=asyncio`.
The JSON formatter lifts the event name and typed fields out of such messages
so a log pipeline can filter on mode, framerate or backend directly.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import UTC, datetime
from typing import TextIO

from framepace.api.logging import FrameLoopLoggingConfig
from framepace.runtime.config import FrameLoopConfig, load_frame_loop_config

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_FIELD_LITERALS: dict[str, object] = {"True": True, "False": False, "None": None}


def split_event_message(message: str) -> tuple[str | None, dict[str, object]]:
    """Split `event key=value ...` into the event name and its fields.

    Free-text messages yield `(None, {})`.
    """
    event, _, rest = message.partition(" ")
    if not event.isidentifier():
        return None, {}
    fields: dict[str, object] = {}
    for token in rest.split():
        key, sep, raw = token.partition("=")
        if not sep or not key.isidentifier():
            return None, {}
        fields[key] = _field_value(raw)
    return event, fields


def _field_value(raw: str) -> object:
    if raw in _FIELD_LITERALS:
        return _FIELD_LITERALS[raw]
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        value = float(raw)
    except ValueError:
        return raw
    return value if math.isfinite(value) else raw


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with frame loop event fields lifted out."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        payload: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": message,
        }
        event, fields = split_event_message(message)
        if event is not None:
            payload["event"] = event
            if fields:
                payload["fields"] = fields
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def configure_framepace_logging(
    config: FrameLoopLoggingConfig,
    *,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Replace root handlers with one console handler in the configured format."""
    handler = logging.StreamHandler(stream)
    if config.format_name.strip().lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.setLevel(logging.getLevelNamesMapping().get(config.level_name.upper(), logging.INFO))
    root.addHandler(handler)
    return handler


def setup_framepace_logging(config: FrameLoopConfig | None = None) -> None:
    """Configure console logging unless the host already installed handlers."""
    if logging.getLogger().handlers:
        return
    cfg = config if config is not None else load_frame_loop_config()
    configure_framepace_logging(
        FrameLoopLoggingConfig(level_name=cfg.log_level, format_name=cfg.log_format)
    )
