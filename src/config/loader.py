"""
Config loader: YAML file -> frozen dataclass tree.

API secrets resolved from environment variables (KRAKEN_API_KEY, KRAKEN_SECRET_KEY).
Config file holds only non-secret values.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger("pnl.config")

DEFAULT_RATE_TIERS = {"starter": 7, "intermediate": 4, "pro": 2}


@dataclass(frozen=True)
class LedgerConfig:
    base_url: str = "https://api.kraken.com"
    page_size: int = 50
    timeout_s: float = 30.0
    api_key: str = ""
    api_secret: str = ""

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_secret)


@dataclass(frozen=True)
class ReportConfig:
    csv_path: str = "trades.csv"


@dataclass(frozen=True)
class AlertingConfig:
    structured_logs: bool = True
    webhook_url: str = ""


@dataclass(frozen=True)
class AppConfig:
    ledger: LedgerConfig
    report: ReportConfig = ReportConfig()
    alerting: AlertingConfig = AlertingConfig()
    rate_tiers: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_RATE_TIERS))

    def delay_for_tier(self, tier: str) -> int:
        """Seconds to wait between page requests for *tier*. Raises KeyError if unknown."""
        return self.rate_tiers[tier.lower()]


def _load_rate_tiers(raw: object) -> dict[str, int]:
    if raw is None:
        return dict(DEFAULT_RATE_TIERS)
    if not isinstance(raw, dict) or not raw:
        raise ValueError("rate_tiers must be a non-empty mapping of tier name to seconds")
    tiers: dict[str, int] = {}
    for name, delay in raw.items():
        seconds = int(delay)
        if seconds < 0:
            raise ValueError(f"rate_tiers.{name} must be >= 0, got {delay}")
        tiers[str(name).lower()] = seconds
    return tiers


def load_config(path: str | Path = "config.yaml") -> AppConfig:
    """
    Load configuration from a YAML file.

    API keys are resolved from environment variables:
      - KRAKEN_API_KEY
      - KRAKEN_SECRET_KEY
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    l_raw = raw.get("ledger") or {}
    ledger_cfg = LedgerConfig(
        base_url=str(l_raw.get("base_url", "https://api.kraken.com")),
        page_size=int(l_raw.get("page_size", 50)),
        timeout_s=float(l_raw.get("timeout_s", 30.0)),
        api_key=os.environ.get("KRAKEN_API_KEY", ""),
        api_secret=os.environ.get("KRAKEN_SECRET_KEY", ""),
    )
    if ledger_cfg.page_size <= 0:
        raise ValueError(f"ledger.page_size must be positive, got {ledger_cfg.page_size}")

    r_raw = raw.get("report") or {}
    report_cfg = ReportConfig(csv_path=str(r_raw.get("csv_path", "trades.csv")))

    a_raw = raw.get("alerting") or {}
    a_cfg = AlertingConfig(
        structured_logs=bool(a_raw.get("structured_logs", True)),
        webhook_url=str(a_raw.get("webhook_url", "")),
    )

    cfg = AppConfig(
        ledger=ledger_cfg,
        report=report_cfg,
        alerting=a_cfg,
        rate_tiers=_load_rate_tiers(raw.get("rate_tiers")),
    )
    logger.debug("Loaded config from %s (tiers: %s)", config_path, ", ".join(cfg.rate_tiers))
    return cfg
