"""Decoder settings.

Values can be overridden through environment variables, the same way the
generated projects read their base URL and token.
"""

import os

from pydantic import BaseModel, Field

DEFAULT_MAX_DEPTH = 32

MAX_DEPTH_ENV = "OPENAPI_PARAMS_MAX_DEPTH"


class DecoderSettings(BaseModel):
    """Limits applied to a single decode call."""

    model_config = {"frozen": True}

    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1)  # nested arrays/objects

    @classmethod
    def from_env(cls) -> "DecoderSettings":
        """Build settings from the environment, falling back to defaults."""
        raw = os.getenv(MAX_DEPTH_ENV)
        if raw is None or not raw.strip():
            return cls()
        return cls(max_depth=int(raw))
