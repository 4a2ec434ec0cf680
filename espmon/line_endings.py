from __future__ import annotations

from typing import Iterator

CR = 0x0D
LF = 0x0A


class LineNormalizer:
    """Normalize device line endings for a terminal in raw mode.

    Raw mode turns off output post-processing, so a bare LF would move down
    without returning the carriage. Mapping applied per byte:

        CR LF      -> CR LF
        bare LF    -> CR LF
        bare CR    -> CR
        other      -> unchanged

    The only state kept between calls is whether the last byte seen was CR, so
    a CR LF pair split across two reads still produces a single CR LF. Bytes
    >= 0x80 are passed through untouched, which keeps UTF-8 sequences intact
    across read boundaries.
    """

    def __init__(self):
        self._after_cr = False

    def reset(self):
        self._after_cr = False

    def normalize(self, data: bytes) -> Iterator[int]:
        """Yield the normalized bytes of ``data`` lazily."""
        for b in data:
            if b == LF and not self._after_cr:
                yield CR
            yield b
            self._after_cr = b == CR


def normalized(data: bytes) -> bytes:
    """One-shot normalization of a complete buffer."""
    return bytes(LineNormalizer().normalize(data))
