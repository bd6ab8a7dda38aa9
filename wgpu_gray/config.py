"""Runtime configuration and logging setup.

Settings come from keyword arguments or the environment:

    WGPU_GRAY_POWER_PREFERENCE   "high-performance" (default) or "low-power"
    WGPU_GRAY_MAX_SIZE           longest image side after load-time scaling (default 500)
    WGPU_GRAY_LOG_LEVEL          logging level name for the CLI (default WARNING)
"""

import os
import logging
from typing import Optional

POWER_PREFERENCES = ("high-performance", "low-power")
DEFAULT_POWER_PREFERENCE = "high-performance"
DEFAULT_MAX_SIZE = 500
DEFAULT_LOG_LEVEL = "WARNING"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class GrayscaleConfig:
    """Settings shared by the device session, image loader and CLI."""

    def __init__(
        self,
        power_preference: str = DEFAULT_POWER_PREFERENCE,
        max_size: int = DEFAULT_MAX_SIZE,
        log_level: str = DEFAULT_LOG_LEVEL,
    ):
        if power_preference not in POWER_PREFERENCES:
            raise ValueError(
                f"power_preference must be one of {POWER_PREFERENCES}, got {power_preference!r}"
            )
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        if not isinstance(logging.getLevelName(log_level.upper()), int):
            raise ValueError(f"Unknown log level {log_level!r}")
        self.power_preference = power_preference
        self.max_size = max_size
        self.log_level = log_level.upper()

    @classmethod
    def from_env(cls, environ: Optional[dict] = None, **overrides) -> "GrayscaleConfig":
        """Build a config from WGPU_GRAY_* variables; keyword overrides win."""
        env = os.environ if environ is None else environ
        kwargs = {}
        if "WGPU_GRAY_POWER_PREFERENCE" in env:
            kwargs["power_preference"] = env["WGPU_GRAY_POWER_PREFERENCE"]
        if "WGPU_GRAY_MAX_SIZE" in env:
            raw = env["WGPU_GRAY_MAX_SIZE"]
            try:
                kwargs["max_size"] = int(raw)
            except ValueError:
                raise ValueError(f"WGPU_GRAY_MAX_SIZE must be an integer, got {raw!r}") from None
        if "WGPU_GRAY_LOG_LEVEL" in env:
            kwargs["log_level"] = env["WGPU_GRAY_LOG_LEVEL"]
        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)

    def adapter_kwargs(self) -> dict:
        """Keyword arguments for ``wgpu.gpu.request_adapter_*``."""
        return {"power_preference": self.power_preference}

    def __repr__(self):
        return (
            f"GrayscaleConfig(power_preference={self.power_preference!r}, "
            f"max_size={self.max_size}, log_level={self.log_level!r})"
        )


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Install a root handler for command-line use. Libraries should not call this."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
