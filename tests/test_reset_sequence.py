import time

import pytest
import serial

from espmon import util
from espmon.errors import GpioError, SerialConnectionError
from espmon.gpio import GpioAddress
from espmon.reset import RESET_SEQUENCE, ResetTarget


class RecordingSerial:
    """Serial stand-in whose control lines append to a shared event log."""
    def __init__(self, log, fail_on=None):
        self.log = log
        self.fail_on = fail_on
        self.port = "/dev/ttyFAKE"

    def _set(self, name, value):
        if self.fail_on == name:
            raise serial.SerialException(f"{name} ioctl failed")
        self.log.append((f"serial_{name}", int(value)))

    dtr = property(lambda self: None, lambda self, v: self._set("dtr", v))
    rts = property(lambda self: None, lambda self, v: self._set("rts", v))


class DummyGpioLine:
    def __init__(self, name, log, fail=False):
        self.name = name
        self.log = log
        self.fail = fail
        self.address = GpioAddress("/dev/gpiochip0", 10 if name == "dtr" else 11)
        self.closed = False

    def set_value(self, value):
        if self.fail:
            raise GpioError(f"failed to set gpio line {self.address}")
        self.log.append((f"gpio_{self.name}", value, time.monotonic()))

    def close(self):
        self.closed = True


@pytest.fixture
def sleeps(monkeypatch):
    calls = []
    monkeypatch.setattr(util, "sleep_s", lambda s: calls.append(s))
    return calls


def test_sequence_table_order():
    assert [(s.signal, s.level) for s in RESET_SEQUENCE] == [("dtr", 0), ("rts", 1), ("rts", 0)]
    assert RESET_SEQUENCE[1].delay == pytest.approx(0.1)


def test_serial_backend_order(sleeps):
    log = []
    ser = RecordingSerial(log)
    ResetTarget().reset(ser)
    assert log == [("serial_dtr", 0), ("serial_rts", 1), ("serial_rts", 0)]
    assert sleeps == [pytest.approx(0.1)]


def test_sleep_happens_between_rts_high_and_low(monkeypatch):
    log = []
    monkeypatch.setattr(util, "sleep_s", lambda s: log.append(("sleep", s)))
    ResetTarget().reset(RecordingSerial(log))
    assert [e[0] for e in log] == ["serial_dtr", "serial_rts", "sleep", "serial_rts"]


def test_gpio_backend_never_touches_serial_lines(sleeps):
    log = []
    ser = RecordingSerial(log)
    target = ResetTarget(dtr=DummyGpioLine("dtr", log), rts=DummyGpioLine("rts", log))
    target.reset(ser)
    assert [(e[0], e[1]) for e in log] == [("gpio_dtr", 0), ("gpio_rts", 1), ("gpio_rts", 0)]
    assert not any(e[0].startswith("serial_") for e in log)


def test_mixed_backends_per_signal(sleeps):
    log = []
    ser = RecordingSerial(log)
    ResetTarget(rts=DummyGpioLine("rts", log)).reset(ser)
    assert [(e[0], e[1]) for e in log] == [("serial_dtr", 0), ("gpio_rts", 1), ("gpio_rts", 0)]


def test_gpio_failure_aborts_without_serial_fallback(sleeps):
    log = []
    ser = RecordingSerial(log)
    target = ResetTarget(dtr=DummyGpioLine("dtr", log), rts=DummyGpioLine("rts", log, fail=True))
    with pytest.raises(GpioError):
        target.reset(ser)
    assert [e[0] for e in log] == ["gpio_dtr"]
    assert sleeps == []


def test_serial_control_line_failure_names_operation(sleeps):
    log = []
    ser = RecordingSerial(log, fail_on="rts")
    with pytest.raises(SerialConnectionError) as ei:
        ResetTarget().reset(ser)
    assert ei.value.operation == "rts"
    assert log == [("serial_dtr", 0)]


def test_describe_and_close():
    log = []
    dtr = DummyGpioLine("dtr", log)
    with ResetTarget(dtr=dtr) as target:
        assert target.uses_gpio
        assert target.describe() == {"dtr": "/dev/gpiochip0:10", "rts": "serial"}
    assert dtr.closed
    assert ResetTarget().describe() == {"dtr": "serial", "rts": "serial"}
