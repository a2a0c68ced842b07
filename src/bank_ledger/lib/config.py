"""Settings — backend URL, snapshot location and ledger defaults.

Read from ``ledger.yaml`` at the project root, then overridden by
``LEDGER_*`` environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

CONFIG_FILENAME = "ledger.yaml"

DEFAULT_BACKEND_URL = "http://localhost:5000"
DEFAULT_SNAPSHOT = "finance_db.json"
CASH_ACCOUNT_ID = "CASH_ACCOUNT"
DEFAULT_CURRENCY = "EUR"


def get_project_root() -> Path:
    """Find the project root by looking for ledger.yaml."""
    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        if (parent / CONFIG_FILENAME).exists():
            return parent
    return cwd


@dataclass
class Settings:
    """Runtime settings for the ledger core and CLI."""

    backend_url: str = DEFAULT_BACKEND_URL
    snapshot_path: Path = field(default_factory=lambda: Path(DEFAULT_SNAPSHOT))
    cash_account_id: str = CASH_ACCOUNT_ID
    default_currency: str = DEFAULT_CURRENCY
    timeout: int = 30
    log_level: str = "INFO"

    @classmethod
    def load(cls, root: Path | None = None) -> "Settings":
        """Load settings for a project root (discovered when not given).

        A missing ledger.yaml means defaults. Relative snapshot paths are
        resolved against the root.
        """
        project_root = root or get_project_root()
        data: dict = {}
        path = project_root / CONFIG_FILENAME
        if path.exists():
            with open(path) as f:
                try:
                    data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ValueError(f"Invalid config {path}: {e}") from e
            if not isinstance(data, dict):
                raise ValueError(f"Invalid config {path}: expected a mapping")

        backend_url = os.environ.get("LEDGER_BACKEND_URL") or data.get(
            "backend_url", DEFAULT_BACKEND_URL
        )
        snapshot = os.environ.get("LEDGER_SNAPSHOT") or data.get(
            "snapshot_path", DEFAULT_SNAPSHOT
        )
        snapshot_path = Path(snapshot)
        if not snapshot_path.is_absolute():
            snapshot_path = project_root / snapshot_path

        return cls(
            backend_url=str(backend_url).rstrip("/"),
            snapshot_path=snapshot_path,
            cash_account_id=os.environ.get("LEDGER_CASH_ACCOUNT_ID")
            or data.get("cash_account_id", CASH_ACCOUNT_ID),
            default_currency=data.get("default_currency", DEFAULT_CURRENCY),
            timeout=int(data.get("timeout", 30)),
            log_level=os.environ.get("LEDGER_LOG_LEVEL") or data.get("log_level", "INFO"),
        )
