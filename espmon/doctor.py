from __future__ import annotations

import os
import sys

import serial  # pyserial

from .constants import READ_CHUNK
from .errors import EspmonError
from .gpio import open_gpio_line
from .logging import JsonLogger
from .connection import open_session
from .serialio import configure, discard_input, open_serial, read_available
from .util import now_s

SELF_TEST_WAIT_S = 2.0


def run_doctor(args, logger: JsonLogger) -> int:
    """Check serial access, the terminal and GPIO lines without resetting anything.

    Returns the number of failed checks (0 when everything is usable)."""
    print("Doctor Mode (safe):")
    print("  - No reset pulse is sent.")
    print()

    failures = 0
    print(f"  OK: pyserial {getattr(serial, '__version__', 'unknown')}")

    if args.port:
        try:
            ser = open_serial(args.port, args.baud)
        except EspmonError as e:
            print(f"  FAIL: {e}")
            logger.emit("doctor_check", check="serial", ok=False, error=str(e))
            failures += 1
        else:
            print(f"  OK: {args.port} opens at {args.baud} baud")
            ser.close()
    else:
        print("  WARN: no serial port given (-p/--port); skipping port check")

    for label, fd in (("stdin", 0), ("stdout", 1)):
        if os.isatty(fd):
            print(f"  OK: {label} is a terminal")
        else:
            print(f"  WARN: {label} is not a terminal; the interactive monitor needs a TTY")

    for name, address in (("dtr", args.gpio_dtr), ("rts", args.gpio_rts)):
        if address is None:
            print(f"  OK: {name.upper()} via serial control line")
            continue
        try:
            line = open_gpio_line(address, name)
        except EspmonError as e:
            print(f"  FAIL: {e}")
            logger.emit("doctor_check", check=f"gpio_{name}", ok=False, error=str(e))
            failures += 1
        else:
            print(f"  OK: {name.upper()} via gpio {address}")
            line.close()

    print()
    print("Doctor complete." if not failures else f"Doctor found {failures} problem(s).")
    return failures


def run_self_test(args, logger: JsonLogger) -> int:
    """Pulse reset once and wait for the device to print something."""
    print("Self-Test")
    try:
        with open_session(args.port, args.baud, args.gpio_dtr, args.gpio_rts, logger=logger) as session:
            ser = session.serial
            configure(ser, args.baud, 0.05)
            discard_input(ser)

            print(f"  Reset via dtr={session.reset_target.describe()['dtr']} rts={session.reset_target.describe()['rts']}")
            session.reset_target.reset(ser, logger=logger)

            print("  Waiting for device output...")
            received = b""
            deadline = now_s() + SELF_TEST_WAIT_S
            while now_s() < deadline:
                received += read_available(ser, READ_CHUNK)
    except EspmonError as e:
        logger.emit("self_test", ok=False, error=str(e))
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if received:
        first = received.decode("utf-8", errors="replace").strip().splitlines()
        print(f"  OK: {len(received)} bytes after reset")
        if first:
            print(f"  First line: {first[0][:72]}")
    else:
        print("  WARN: no output after reset (check wiring, baud rate and reset lines)")
    logger.emit("self_test", ok=bool(received), bytes_rx=len(received))
    print("Self-test complete.")
    return 0 if received else 1
