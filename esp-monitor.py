#!/usr/bin/env python3
#
# Serial monitor for embedded boards
#
# Opens the board's serial port, puts the host terminal into raw mode and
# forwards bytes both ways. Ctrl+R pulses the board's reset through the
# adapter's DTR/RTS lines or through GPIO lines; Ctrl+C exits.
#

from __future__ import annotations

from espmon.cli import build_arg_parser, main
from espmon.config import apply_config, resolved_config_dict

__all__ = ["build_arg_parser", "main", "apply_config", "resolved_config_dict"]


if __name__ == "__main__":
    raise SystemExit(main())
