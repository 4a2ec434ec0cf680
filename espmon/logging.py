from __future__ import annotations

import json
import sys
import time
from typing import Optional, TextIO


class JsonLogger:
    """Minimal structured logger.

    Emits single-line events (serial open, reset pulses, session exit) either as
    JSON or as a timestamped ``event key=value`` line, so logs are easy to grep
    and machine-parse."""
    def __init__(self, enable_json: bool, stream: Optional[TextIO] = None):
        """Create a logger.

        Args:
            enable_json: Emit JSON objects instead of plain text lines.
            stream: File-like object for event output (defaults to stdout).
        """
        self.enable_json = enable_json
        self.stream = stream
        # Raw terminal mode does no output processing; RawModeGuard switches this to "\r\n".
        self.line_end = "\n"

    def emit(self, event: str, **fields):
        """Emit an event with a name and optional key/value fields."""
        t = time.time()
        ts_iso = time.strftime('%Y-%m-%d %H:%M:%S', time.localtime(t)) + f'.{int((t - int(t))*1000):03d}'
        if self.enable_json:
            payload = {"ts": t, "ts_iso": ts_iso, "event": event, **fields}
            msg = json.dumps(payload, sort_keys=True)
        else:
            msg = f"[{ts_iso}] {event}"
            if fields:
                msg += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        out = self.stream if self.stream is not None else sys.stdout
        out.write(msg + self.line_end)
        out.flush()
