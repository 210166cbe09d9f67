"""
Exceptions raised by Pagebridge.

Content problems never raise: parsers return an empty list and converters
fall back to a generic block. Only misconfiguration is fatal.
"""

from __future__ import annotations


class PageBridgeError(Exception):
    """Base class for all Pagebridge errors."""


class UnknownDialectError(PageBridgeError, ValueError):
    """A dialect name that is not registered was requested."""

    def __init__(self, name: str, known: list[str] | None = None):
        self.name = name
        self.known = sorted(known or [])
        hint = f" (known: {', '.join(self.known)})" if self.known else ""
        super().__init__(f"Unknown dialect: {name!r}{hint}")
