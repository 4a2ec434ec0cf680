from __future__ import annotations

from typing import Optional


class EspmonError(RuntimeError):
    """Base class for errors surfaced to the command line."""


class SerialConnectionError(EspmonError):
    """A serial operation other than a read timeout failed.

    ``operation`` names the failing call (open, read, write, flush, dtr, rts,
    configure, reset_input_buffer) so the top-level message says what broke.
    """

    def __init__(self, operation: str, cause: Optional[BaseException] = None, port: Optional[str] = None):
        self.operation = operation
        self.cause = cause
        self.port = port
        where = f" on {port}" if port else ""
        msg = f"serial {operation} failed{where}"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)


class GpioError(EspmonError):
    """Opening, requesting or writing a GPIO line failed."""


class GpioAddressError(EspmonError, ValueError):
    """A GPIO address is not of the form ``<chip-path>:<line>``."""


class TerminalError(EspmonError):
    """The host terminal could not be put into raw mode."""
