from __future__ import annotations

from typing import Optional, Protocol, Tuple, Union

from .gpio import GpioAddress, parse_gpio_address
from .logging import JsonLogger
from .monitor import SerialMonitor
from .reset import ResetTarget
from .serialio import open_serial
from .state import MonitorState

AddressLike = Union[str, GpioAddress, None]


class Flasher(Protocol):
    """The parts of a flashing session the monitor relies on.

    A flasher is connected and used elsewhere (board identification, loading
    images to RAM or flash); once done it hands its serial port over with
    into_serial().
    """

    def board_info(self): ...

    def into_serial(self): ...


def resolve_gpio_addresses(dtr: AddressLike = None, rts: AddressLike = None) -> Tuple[Optional[GpioAddress], Optional[GpioAddress]]:
    """Validate both addresses before any device is touched."""
    def _one(value):
        if value is None or value == "":
            return None
        if isinstance(value, GpioAddress):
            return value
        return parse_gpio_address(value)
    return _one(dtr), _one(rts)


class MonitorSession:
    """An open serial port plus the reset backend chosen for it.

    Closing the session releases the GPIO lines and the port."""
    def __init__(self, ser, reset_target: ResetTarget, port: str = ""):
        self.serial = ser
        self.reset_target = reset_target
        self.port = port

    def monitor(self, logger: Optional[JsonLogger] = None, **kwargs) -> MonitorState:
        return SerialMonitor(self.serial, self.reset_target, logger, **kwargs).run()

    def close(self):
        try:
            self.reset_target.close()
        finally:
            self.serial.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


def open_session(
    port: str,
    baud: int,
    gpio_dtr: AddressLike = None,
    gpio_rts: AddressLike = None,
    logger: Optional[JsonLogger] = None,
) -> MonitorSession:
    """Open ``port`` and the optional GPIO reset lines.

    Malformed GPIO addresses raise GpioAddressError before the port is opened.
    """
    dtr, rts = resolve_gpio_addresses(gpio_dtr, gpio_rts)
    ser = open_serial(port, baud, logger=logger)
    try:
        target = ResetTarget.from_addresses(dtr, rts, logger=logger)
    except Exception:
        ser.close()
        raise
    return MonitorSession(ser, target, port=port)


def session_from_flasher(
    flasher: Flasher,
    gpio_dtr: AddressLike = None,
    gpio_rts: AddressLike = None,
    logger: Optional[JsonLogger] = None,
) -> MonitorSession:
    """Take over the serial port of a finished flashing session."""
    dtr, rts = resolve_gpio_addresses(gpio_dtr, gpio_rts)
    ser = flasher.into_serial()
    try:
        target = ResetTarget.from_addresses(dtr, rts, logger=logger)
    except Exception:
        ser.close()
        raise
    return MonitorSession(ser, target, port=getattr(ser, "port", "") or "")
