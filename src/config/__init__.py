"""
Configuration loader.

App config: reads config.yaml, resolves env vars for secrets.
"""

from config.loader import (
    AlertingConfig,
    AppConfig,
    LedgerConfig,
    ReportConfig,
    load_config,
)

__all__ = [
    "AlertingConfig",
    "AppConfig",
    "LedgerConfig",
    "ReportConfig",
    "load_config",
]
