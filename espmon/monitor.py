from __future__ import annotations

import sys
from typing import Optional

from .constants import BANNER, DEFAULT_BAUD, QUIT_KEY, READ_TIMEOUT_S, RESET_KEY
from .keys import KeyEvent, translate
from .line_endings import LineNormalizer
from .logging import JsonLogger
from .reset import ResetTarget
from .serialio import configure, read_available, write_all
from .state import MonitorState
from .terminal import RawModeGuard, TerminalInput
from .util import now_s


class SerialMonitor:
    """Interactive serial console.

    Forwards device output to the host terminal and key presses to the device
    from a single polling loop. Ctrl+R pulses the reset target, Ctrl+C ends
    the session. The terminal is held in raw mode for exactly the lifetime of
    run()."""
    def __init__(
        self,
        ser,
        reset_target: Optional[ResetTarget] = None,
        logger: Optional[JsonLogger] = None,
        baud: int = DEFAULT_BAUD,
        read_timeout_s: float = READ_TIMEOUT_S,
        show_banner: bool = True,
        verbose: bool = False,
        terminal: Optional[TerminalInput] = None,
        stdin_fd: Optional[int] = None,
        stdout=None,
    ):
        """
        Args:
            ser: An open pyserial Serial instance, owned by the caller.
            reset_target: Backend for Ctrl+R; defaults to the port's DTR/RTS lines.
            logger: JsonLogger for session events.
            baud: Baud rate applied to the port when the monitor starts.
            read_timeout_s: Upper bound for each serial read.
            terminal: Key event source; built from stdin_fd when omitted.
            stdout: Binary stream for device output (defaults to sys.stdout.buffer).
        """
        self.ser = ser
        self.reset_target = reset_target if reset_target is not None else ResetTarget()
        self.logger = logger if logger is not None else JsonLogger(enable_json=False)
        self.baud = int(baud)
        self.read_timeout_s = float(read_timeout_s)
        self.show_banner = bool(show_banner)
        self.verbose = bool(verbose)
        self.state = MonitorState(port=getattr(ser, "port", "") or "", baud=self.baud)

        self._terminal = terminal
        self._stdin_fd = stdin_fd
        self._stdout = stdout
        self._normalizer = LineNormalizer()

    @property
    def stdout(self):
        return self._stdout if self._stdout is not None else sys.stdout.buffer

    def run(self) -> MonitorState:
        """Run until Ctrl+C. Fatal serial/GPIO/terminal errors propagate."""
        if self.show_banner:
            self._write_out((BANNER + "\n").encode())
        configure(self.ser, self.baud, self.read_timeout_s)

        self.state.running = True
        self.state.started_ts = now_s()
        with RawModeGuard(fd=self._stdin_fd, logger=self.logger):
            if self.verbose:
                self.logger.emit("monitor_start", port=self.state.port, baud=self.baud, **self.reset_target.describe())
            terminal = self._terminal if self._terminal is not None else TerminalInput(fd=self._stdin_fd)
            while self.state.running:
                self.step(terminal)

        if self.verbose:
            self.logger.emit(
                "monitor_exit",
                bytes_rx=self.state.bytes_rx,
                bytes_tx=self.state.bytes_tx,
                resets=self.state.resets,
                duration_s=round(now_s() - self.state.started_ts, 3),
            )
        return self.state

    def step(self, terminal) -> bool:
        """One loop iteration: device output first, then at most one key.

        Returns False once the session has been terminated."""
        data = read_available(self.ser)
        if data:
            self.state.bytes_rx += len(data)
            self._write_out(bytes(self._normalizer.normalize(data)))

        if terminal.poll(0):
            self.handle_key(terminal.read())
        return self.state.running

    def handle_key(self, event: KeyEvent):
        """Quit, reset, or forward a key press to the device."""
        self.state.keys += 1
        if event.is_ctrl_char(QUIT_KEY):
            self.state.running = False
            return
        if event.is_ctrl_char(RESET_KEY):
            self.reset_target.reset(self.ser, logger=self.logger if self.verbose else None)
            self.state.resets += 1
            return

        data = translate(event)
        if data:
            write_all(self.ser, data)
            self.state.bytes_tx += len(data)

    def _write_out(self, data: bytes):
        out = self.stdout
        out.write(data)
        out.flush()
