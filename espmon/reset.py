from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from . import util
from .constants import RESET_HOLD_S
from .gpio import GpioAddress, GpioLine, open_gpio_line
from .logging import JsonLogger
from .serialio import set_dtr, set_rts

DTR = "dtr"
RTS = "rts"


@dataclass(frozen=True)
class ResetStep:
    """Drive one signal to a level, then hold for ``delay`` seconds."""
    signal: str
    level: int
    delay: float = 0.0


# Classic auto-reset circuit: EN follows RTS while DTR (IO0) stays released.
RESET_SEQUENCE = (
    ResetStep(DTR, 0),
    ResetStep(RTS, 1, delay=RESET_HOLD_S),
    ResetStep(RTS, 0),
)


class ResetTarget:
    """Where the DTR and RTS signals of the reset pulse are driven.

    Each signal goes through its GPIO line when one is configured, otherwise
    through the serial port's own control line. A configured GPIO line is the
    only path for its signal: GPIO failures are raised, never retried on the
    serial line.
    """

    def __init__(self, dtr: Optional[GpioLine] = None, rts: Optional[GpioLine] = None):
        self.dtr = dtr
        self.rts = rts

    @classmethod
    def from_addresses(
        cls,
        dtr: Optional[GpioAddress] = None,
        rts: Optional[GpioAddress] = None,
        logger: Optional[JsonLogger] = None,
    ) -> "ResetTarget":
        """Open the GPIO lines named by the addresses (either may be None)."""
        dtr_line = open_gpio_line(dtr, DTR, logger=logger) if dtr is not None else None
        try:
            rts_line = open_gpio_line(rts, RTS, logger=logger) if rts is not None else None
        except Exception:
            if dtr_line is not None:
                dtr_line.close()
            raise
        return cls(dtr=dtr_line, rts=rts_line)

    @property
    def uses_gpio(self) -> bool:
        return self.dtr is not None or self.rts is not None

    def describe(self) -> dict:
        """Backend per signal, for logs and diagnostics."""
        return {
            DTR: str(self.dtr.address) if self.dtr is not None else "serial",
            RTS: str(self.rts.address) if self.rts is not None else "serial",
        }

    def drive(self, ser, signal: str, level: int):
        line = self.dtr if signal == DTR else self.rts
        if line is not None:
            line.set_value(level)
        elif signal == DTR:
            set_dtr(ser, level)
        else:
            set_rts(ser, level)

    def reset(self, ser, logger: Optional[JsonLogger] = None):
        """Pulse the device into reset: DTR low, RTS high, hold, RTS low.

        The first failing step aborts the sequence and its error propagates.
        """
        for step in RESET_SEQUENCE:
            self.drive(ser, step.signal, step.level)
            if step.delay:
                util.sleep_s(step.delay)
        if logger is not None:
            logger.emit("reset", **self.describe())

    def close(self):
        for line in (self.dtr, self.rts):
            if line is not None:
                line.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
