"""
Configuration for the table store session, REPL and API.
"""

import os
from dataclasses import dataclass


@dataclass
class StoreConfig:
    """Tunable settings for a table store session.

    Attributes:
        data_dir: Directory holding saved tables
        auto_display: Whether the REPL prints the table after each command
        max_display_rows: Maximum result rows rendered before truncating
        initial_result_capacity: Starting capacity of a result set
        log_level: Logging level name for the entry points
    """

    data_dir: str = "data"
    auto_display: bool = True
    max_display_rows: int = 50
    initial_result_capacity: int = 16
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "StoreConfig":
        """Build a config from TABLESTORE_* environment variables."""
        config = cls()
        config.data_dir = os.environ.get("TABLESTORE_DATA_DIR", config.data_dir)
        auto_display = os.environ.get("TABLESTORE_AUTO_DISPLAY")
        if auto_display is not None:
            config.auto_display = auto_display.strip().lower() in ("1", "true", "on", "yes")
        config.log_level = os.environ.get("TABLESTORE_LOG_LEVEL", config.log_level).upper()
        return config
