"""
Code Royale Bot - Configuration
================================
Operational settings for the bot process. Game constants and heuristic
weights are not configurable; see models.py.
"""

from dataclasses import dataclass, fields
from typing import Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class BotConfig:
    log_level: str = "WARNING"
    avoid_knights: bool = True             # apply the give-way correction
    record_dir: Optional[str] = None       # dump every turn as YAML for replay

    def summary(self) -> str:
        parts = [f"log_level={self.log_level}", f"avoid_knights={self.avoid_knights}"]
        if self.record_dir:
            parts.append(f"record_dir={self.record_dir}")
        return ", ".join(parts)


_BOOL_FIELDS = {"avoid_knights"}
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _coerce(key: str, val):
    if key in _BOOL_FIELDS:
        if isinstance(val, bool):
            return val
        s = str(val).strip().lower()
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
        raise ValueError(f"Invalid boolean for {key}: {val!r}")
    if key == "log_level":
        level = str(val).strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {val!r}")
        return level
    if key == "record_dir":
        return str(val) if val else None
    return val


def apply_overrides(config: BotConfig, data: dict) -> BotConfig:
    """Set known fields from a mapping; unknown keys are ignored."""
    known = {f.name for f in fields(BotConfig)}
    for key, val in data.items():
        if key in known:
            setattr(config, key, _coerce(key, val))
    return config


def parse_config_string(s: str, base: Optional[BotConfig] = None) -> BotConfig:
    """Parse 'log_level=DEBUG,avoid_knights=false' into a BotConfig."""
    config = base if base is not None else BotConfig()
    if not s or not s.strip():
        return config

    data = {}
    for part in s.split(","):
        part = part.strip()
        if "=" not in part:
            continue
        key, val = part.split("=", 1)
        key = key.strip()
        # Handle common aliases
        if key == "log":
            key = "log_level"
        if key == "record":
            key = "record_dir"
        data[key] = val.strip()

    return apply_overrides(config, data)
