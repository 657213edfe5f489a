"""Path tracking for error messages.

A ParseContext is immutable: descending into an array item or an object
property returns a new context, so a failed child can never leave a stale
segment behind for its siblings.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ParseContext:
    """Where in a parameter value the decoder currently is.

    Attributes:
        param_name: Name of the parameter being decoded.
        location:   Where the parameter came from (path, query, ...).
        segments:   ``[i]`` / ``.key`` segments below the parameter itself.
    """

    param_name: str
    location: str
    segments: tuple[str, ...] = ()

    @property
    def depth(self) -> int:
        return len(self.segments)

    @property
    def path(self) -> str:
        """Full path, e.g. ``colors[2]`` or ``filter.tags[0]``."""
        return self.param_name + "".join(self.segments)

    def index(self, i: int) -> ParseContext:
        return ParseContext(self.param_name, self.location, self.segments + (f"[{i}]",))

    def key(self, key: str) -> ParseContext:
        return ParseContext(self.param_name, self.location, self.segments + (f".{key}",))
