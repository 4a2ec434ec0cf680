from __future__ import annotations

import serial  # pyserial

from .constants import READ_CHUNK
from .errors import SerialConnectionError
from .logging import JsonLogger

# pyserial reports hardware faults as SerialException and passes OS errors through.
SERIAL_ERRORS = (serial.SerialException, OSError, ValueError)


def _port_name(ser) -> str:
    return getattr(ser, "port", None) or getattr(ser, "name", None) or ""


def open_serial(port: str, baud: int, logger: JsonLogger = None):
    """Open ``port`` with RTS/CTS, DSR/DTR and XON/XOFF flow control off.

    The monitor drives DTR and RTS itself; pyserial still asserts both when
    the port opens.
    """
    try:
        ser = serial.Serial(port, baud, timeout=0, rtscts=False, dsrdtr=False, xonxoff=False)
    except SERIAL_ERRORS as e:
        raise SerialConnectionError("open", e, port=port) from e
    if logger is not None:
        logger.emit("serial_open", port=port, baud=baud)
    return ser


def configure(ser, baud: int, timeout_s: float):
    """Set the monitor baud rate and the bounded read timeout."""
    try:
        ser.baudrate = baud
        ser.timeout = timeout_s
    except SERIAL_ERRORS as e:
        raise SerialConnectionError("configure", e, port=_port_name(ser)) from e


def read_available(ser, size: int = READ_CHUNK) -> bytes:
    """Read up to ``size`` bytes, waiting at most the port timeout.

    A timeout is not an error: it returns ``b""``.
    """
    try:
        return ser.read(size) or b""
    except serial.SerialTimeoutException:
        return b""
    except SERIAL_ERRORS as e:
        raise SerialConnectionError("read", e, port=_port_name(ser)) from e


def write_all(ser, data: bytes):
    """Write ``data`` and flush so it leaves the host immediately."""
    try:
        ser.write(data)
    except SERIAL_ERRORS as e:
        raise SerialConnectionError("write", e, port=_port_name(ser)) from e
    try:
        ser.flush()
    except SERIAL_ERRORS as e:
        raise SerialConnectionError("flush", e, port=_port_name(ser)) from e


def set_dtr(ser, level: bool):
    try:
        ser.dtr = bool(level)
    except SERIAL_ERRORS as e:
        raise SerialConnectionError("dtr", e, port=_port_name(ser)) from e


def set_rts(ser, level: bool):
    try:
        ser.rts = bool(level)
    except SERIAL_ERRORS as e:
        raise SerialConnectionError("rts", e, port=_port_name(ser)) from e


def discard_input(ser):
    """Drop anything already buffered on the receive side."""
    try:
        ser.reset_input_buffer()
    except SERIAL_ERRORS as e:
        raise SerialConnectionError("reset_input_buffer", e, port=_port_name(ser)) from e
