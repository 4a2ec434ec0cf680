from __future__ import annotations

from dataclasses import dataclass


@dataclass
class MonitorState:
    """Per-session counters for one monitor run.

    ``running`` is the whole state machine: True while the loop runs, False
    once the quit key was pressed. Nothing here outlives the session."""
    running: bool = True
    port: str = ""
    baud: int = 0

    bytes_rx: int = 0
    bytes_tx: int = 0
    keys: int = 0
    resets: int = 0
    started_ts: float = 0.0

    @property
    def terminated(self) -> bool:
        return not self.running
