from __future__ import annotations

VERSION = "1.0.0"

DEFAULT_BAUD = 115200
READ_CHUNK = 128
READ_TIMEOUT_S = 0.005
RESET_HOLD_S = 0.1

QUIT_KEY = "c"
RESET_KEY = "r"

BANNER = """\
Commands:
    CTRL+R    Reset chip
    CTRL+C    Exit
"""


USAGE_EXAMPLES = """\
Usage examples:
  # Open a monitor on a USB serial adapter
  espmon -p /dev/ttyUSB0

  # Monitor at a different baud rate
  espmon -p /dev/ttyUSB0 --baud 921600

  # Drive reset through GPIO lines instead of the adapter's DTR/RTS
  espmon -p /dev/ttyAMA0 --gpio-dtr /dev/gpiochip0:10 --gpio-rts /dev/gpiochip0:11

  # Pulse reset once and check the device prints something
  espmon --self-test -p /dev/ttyUSB0

  # Host diagnostics (serial, terminal and GPIO checks)
  espmon --doctor -p /dev/ttyUSB0
"""
