from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Optional

from .errors import GpioAddressError, GpioError
from .logging import JsonLogger

_CHIP_RE = re.compile(r"gpiochip(\d+)$")


@dataclass(frozen=True)
class GpioAddress:
    """A line on a GPIO character device, written as ``/dev/gpiochip0:10``."""
    chip: str
    line: int

    def __str__(self):
        return f"{self.chip}:{self.line}"

    @property
    def chip_index(self) -> int:
        """Controller number of the chip device, following symlinks (udev aliases)."""
        m = _CHIP_RE.search(os.path.basename(os.path.realpath(self.chip)))
        if m is None:
            raise GpioError(f"`{self.chip}` is not a gpio character device (expected e.g. /dev/gpiochip0)")
        return int(m.group(1))


def parse_gpio_address(text: str) -> GpioAddress:
    """Parse ``<chip-path>:<line>``. Nothing is opened here."""
    tokens = str(text).split(":")
    if len(tokens) != 2 or not tokens[0]:
        raise GpioAddressError(f"`{text}` is not a valid gpio cdev, define it like `/dev/gpiochip0:10`")
    try:
        line = int(tokens[1])
    except ValueError:
        raise GpioAddressError(f"`{tokens[1]}` is not a valid gpio line number") from None
    if line < 0:
        raise GpioAddressError(f"`{tokens[1]}` is not a valid gpio line number")
    return GpioAddress(chip=tokens[0], line=line)


def _chip_api():
    """Return the lgpio module (character-device GPIO, any board)."""
    # Imported on first use so hosts without GPIO can still run the serial-only paths.
    import lgpio
    return lgpio


class GpioLine:
    """One output line used in place of a serial control line.

    Holds an lgpio chip handle with ``address.line`` claimed as output until close()."""
    def __init__(self, address: GpioAddress, handle: int, api, name: str = ""):
        self.address = address
        self.name = name
        self._handle = handle
        self._api = api

    def set_value(self, value: int):
        """Drive the line low (0) or high (1)."""
        if self._handle is None:
            raise GpioError(f"gpio line {self.address} is closed")
        try:
            self._api.gpio_write(self._handle, self.address.line, 1 if value else 0)
        except Exception as e:
            raise GpioError(f"failed to set gpio line {self.address} to {value}: {e}") from e

    def close(self):
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            self._api.gpio_free(handle, self.address.line)
        finally:
            self._api.gpiochip_close(handle)

    def __repr__(self):
        return f"GpioLine({self.name or 'gpio'}={self.address})"


def open_gpio_line(address: GpioAddress, name: str, logger: Optional[JsonLogger] = None) -> GpioLine:
    """Request ``address`` as an output, initially low.

    Args:
        address: Parsed GPIO address.
        name: Signal this line stands in for (``dtr`` / ``rts``), used in messages.
        logger: Optional logger for a ``gpio_line_open`` event.
    """
    chip = address.chip_index
    handle = None
    try:
        api = _chip_api()
        handle = api.gpiochip_open(chip)
        api.gpio_claim_output(handle, address.line, 0)
    except Exception as e:
        if handle is not None:
            api.gpiochip_close(handle)
        raise GpioError(f"cannot request gpio line {address} for {name.upper()}: {e}") from e
    if logger is not None:
        logger.emit("gpio_line_open", signal=name, chip=address.chip, line=address.line)
    return GpioLine(address, handle, api, name=name)
