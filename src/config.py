"""
Configuration module for the SmartBi dashboard host and UI processes.
Centralizes constants and environment-driven settings with validation.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path


class ConfigError(Exception):
    """Configuration validation error"""

    pass


def _safe_int_env(name: str, default: int, min_val: int = None, max_val: int = None) -> int:
    """
    Safely parse integer environment variable with bounds.
    Falls back to default on invalid values.
    """
    logger_local = logging.getLogger(__name__)
    try:
        value = int(os.getenv(name, str(default)))
        if min_val is not None:
            value = max(min_val, value)
        if max_val is not None:
            value = min(max_val, value)
        return value
    except (ValueError, TypeError):
        logger_local.warning(f"Invalid {name}, using default {default}")
        return default


def _safe_float_env(name: str, default: float) -> float:
    """Parse a float environment variable, falling back to default."""
    try:
        return float(os.getenv(name, str(default)))
    except (ValueError, TypeError):
        logging.getLogger(__name__).warning(f"Invalid {name}, using default {default}")
        return default


# ========== Layout Settings ==========
LAYOUT = {
    "spacing": 10,
    "height_ratio": 0.4,
    # (minimum dashboard width, column count), widest first
    "column_breakpoints": ((1200, 3), (800, 2)),
    "min_columns": 1,
}

# ========== Dashboard Defaults ==========
DASHBOARD = {
    "width": 1200,
    "height": 768,
    "name": "Dashboard",
}

# ========== Logging ==========
LOGGING = {
    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "date_format": "%Y-%m-%d %H:%M:%S",
    "max_bytes": 5 * 1024 * 1024,
    "backup_count": 3,
}

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class AppConfig:
    """
    Runtime configuration shared by the host and UI processes.

    All settings can be overridden via environment variables.
    """

    # Bridge (host websocket server)
    host: str = field(default_factory=lambda: os.getenv("SMARTBI_HOST", "localhost"))
    port: int = field(default_factory=lambda: _safe_int_env("SMARTBI_PORT", 9100, 1, 65535))
    request_timeout: float = field(
        default_factory=lambda: _safe_float_env("SMARTBI_REQUEST_TIMEOUT", 10.0)
    )

    # Document tagging
    plugin_id: str = field(default_factory=lambda: os.getenv("SMARTBI_PLUGIN_ID", "smartbi-plugin"))

    # Logging
    log_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("SMARTBI_LOG_DIR", str(Path.home() / ".smartbi" / "logs"))
        ).expanduser()
    )
    log_level: str = field(default_factory=lambda: os.getenv("SMARTBI_LOG_LEVEL", "INFO"))
    json_logs: bool = field(
        default_factory=lambda: os.getenv("SMARTBI_JSON_LOGS", "false").lower() == "true"
    )

    @property
    def ws_url(self) -> str:
        """Websocket URL the UI process connects to."""
        return f"ws://{self.host}:{self.port}/bridge"

    def validate(self) -> None:
        """Raise ConfigError listing every invalid setting."""
        errors = []
        if not 0 < self.port < 65536:
            errors.append(f"Invalid port: {self.port}")
        if self.request_timeout <= 0:
            errors.append(f"Request timeout must be positive: {self.request_timeout}")
        if self.log_level.upper() not in VALID_LOG_LEVELS:
            errors.append(f"Invalid log level: {self.log_level}")
        if not self.plugin_id:
            errors.append("Plugin id must not be empty")
        if errors:
            raise ConfigError("; ".join(errors))

    def logging_config(self) -> dict:
        """Settings consumed by services.logger.LoggerService."""
        return {
            "log_dir": str(self.log_dir),
            "log_level": self.log_level.upper(),
            "console_level": self.log_level.upper(),
            "json_logs": self.json_logs,
            "format": LOGGING["format"],
            "date_format": LOGGING["date_format"],
            "max_bytes": LOGGING["max_bytes"],
            "backup_count": LOGGING["backup_count"],
        }
