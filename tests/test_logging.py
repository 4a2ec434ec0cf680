import io
import json

from espmon.logging import JsonLogger


def test_json_events_are_single_lines():
    buf = io.StringIO()
    JsonLogger(enable_json=True, stream=buf).emit("reset", dtr="serial", rts="/dev/gpiochip0:11")
    line = buf.getvalue()
    assert line.endswith("\n") and line.count("\n") == 1
    payload = json.loads(line)
    assert payload["event"] == "reset"
    assert payload["rts"] == "/dev/gpiochip0:11"
    assert "ts" in payload and "ts_iso" in payload


def test_text_events_have_key_values():
    buf = io.StringIO()
    JsonLogger(enable_json=False, stream=buf).emit("serial_open", port="/dev/ttyUSB0", baud=115200)
    line = buf.getvalue()
    assert line.startswith("[")
    assert line.rstrip().endswith("serial_open port=/dev/ttyUSB0 baud=115200")


def test_raw_mode_line_end():
    buf = io.StringIO()
    logger = JsonLogger(enable_json=False, stream=buf)
    logger.line_end = "\r\n"
    logger.emit("monitor_exit")
    assert buf.getvalue().endswith("monitor_exit\r\n")
