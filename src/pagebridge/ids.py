"""
Dialect-native identifier sequences.

Each converter instance owns its own sequence, so identifiers are fresh per
conversion call and concurrent conversions never interleave.
"""

from __future__ import annotations

import time
import uuid


class HexIdSequence:
    """Short random hex ids (Elementor style), unique within the sequence."""

    def __init__(self, length: int = 7):
        self.length = length
        self._issued: set[str] = set()

    def next(self) -> str:
        while True:
            candidate = uuid.uuid4().hex[:self.length]
            if candidate not in self._issued:
                self._issued.add(candidate)
                return candidate


class PrefixedIdSequence:
    """Sequential prefixed ids (Bricks style): brxe00001, brxe00002, ..."""

    def __init__(self, prefix: str = "brxe", width: int = 5):
        self.prefix = prefix
        self.width = width
        self._counter = 0

    def next(self) -> str:
        self._counter += 1
        return f"{self.prefix}{self._counter:0{self.width}d}"


class TimestampIdSequence:
    """Timestamp-based ids (WPBakery tab style): <epoch-ms>-<n>."""

    def __init__(self, epoch_ms: int | None = None):
        self.epoch_ms = epoch_ms if epoch_ms is not None else int(time.time() * 1000)
        self._counter = 0

    def next(self) -> str:
        self._counter += 1
        return f"{self.epoch_ms}-{self._counter}"
