from __future__ import annotations

import argparse
import json
import sys
import tomllib
from argparse import RawDescriptionHelpFormatter

from .config import apply_config, load_toml_config, resolved_config_dict
from .connection import open_session, resolve_gpio_addresses
from .constants import USAGE_EXAMPLES, VERSION
from .doctor import run_doctor, run_self_test
from .errors import EspmonError, GpioAddressError
from .gpio import parse_gpio_address
from .logging import JsonLogger


def gpio_address_arg(text: str):
    """argparse ``type=`` hook keeping the descriptive address error."""
    try:
        return parse_gpio_address(text)
    except GpioAddressError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def build_arg_parser():
    """Construct the CLI argument parser."""
    ap = argparse.ArgumentParser(
        prog="espmon",
        description="Serial monitor for embedded boards with DTR/RTS or GPIO reset.",
        epilog=USAGE_EXAMPLES,
        formatter_class=RawDescriptionHelpFormatter,
    )
    # Unset options stay None so a TOML config can backfill them after parsing.
    ap.set_defaults(verbose=None, json=None, no_banner=None)
    ap.add_argument("-p", "--port", help="Serial port connected to the target device (e.g., /dev/ttyUSB0).")
    ap.add_argument("--baud", type=int, help="Monitor baud rate (default: 115200).")
    ap.add_argument("--gpio-dtr", type=gpio_address_arg, metavar="CHIP:LINE",
                    help="Use a GPIO line instead of the serial DTR line, e.g. /dev/gpiochip0:10.")
    ap.add_argument("--gpio-rts", type=gpio_address_arg, metavar="CHIP:LINE",
                    help="Use a GPIO line instead of the serial RTS line, e.g. /dev/gpiochip0:11.")
    ap.add_argument("--verbose", dest="verbose", action="store_true", help="Log session events (start, resets, exit).")
    ap.add_argument("--no-verbose", dest="verbose", action="store_false", help="Disable verbose logging.")
    json_group = ap.add_mutually_exclusive_group()
    json_group.add_argument("--json", dest="json", action="store_true", help="Emit JSON log events.")
    json_group.add_argument("--no-json", dest="json", action="store_false", help="Disable JSON log output.")
    ap.add_argument("--no-banner", dest="no_banner", action="store_true", help="Disable the startup banner.")
    ap.add_argument("--banner", dest="no_banner", action="store_false", help="Enable the startup banner.")
    ap.add_argument("--doctor", action="store_true", help="Run host diagnostics (serial, terminal, GPIO) and exit.")
    ap.add_argument("--self-test", action="store_true", help="Pulse reset once, wait for device output and exit.")
    ap.add_argument("--config", help="Path to a TOML config file. CLI args override config values.")
    ap.add_argument("--print-config", action="store_true", help="Print the resolved configuration and exit.")
    ap.add_argument("--version", action="store_true", help="Print version and exit.")
    return ap


def main(argv=None) -> int:
    """CLI entry point. Parses args, opens the port and runs the monitor."""
    ap = build_arg_parser()
    argv = sys.argv[1:] if argv is None else list(argv)
    if not argv:
        ap.print_help()
        return 0

    args = ap.parse_args(argv)

    if args.version:
        print(VERSION)
        return 0

    cfg = {}
    if args.config:
        try:
            cfg = load_toml_config(args.config)
        except (OSError, tomllib.TOMLDecodeError) as e:
            print(f"ERROR: cannot read config {args.config}: {e}", file=sys.stderr)
            return 2
    apply_config(args, cfg)

    # Addresses from the config file have not been through argparse yet.
    try:
        args.gpio_dtr, args.gpio_rts = resolve_gpio_addresses(args.gpio_dtr, args.gpio_rts)
    except GpioAddressError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    if args.print_config:
        print(json.dumps(resolved_config_dict(args), indent=2, sort_keys=True))
        return 0

    logger = JsonLogger(enable_json=bool(args.json))

    if args.doctor:
        return 1 if run_doctor(args, logger) else 0

    if not args.port:
        raise SystemExit("Monitor mode requires -p/--port")

    if args.self_test:
        return run_self_test(args, logger)

    if not args.no_banner:
        print(f"espmon {VERSION}")
        logger.emit(
            "startup",
            version=VERSION,
            port=args.port,
            baud=args.baud,
            gpio_dtr=(str(args.gpio_dtr) if args.gpio_dtr else None),
            gpio_rts=(str(args.gpio_rts) if args.gpio_rts else None),
        )

    try:
        with open_session(args.port, args.baud, args.gpio_dtr, args.gpio_rts, logger=logger) as session:
            session.monitor(logger, baud=args.baud, verbose=bool(args.verbose))
    except EspmonError as e:
        logger.emit("fatal", error=str(e))
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
