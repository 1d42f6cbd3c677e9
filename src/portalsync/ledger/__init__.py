"""Version ledger exports for portalsync."""

from __future__ import annotations

from .version_ledger import VersionLedger, latest_per_group

__all__ = ["VersionLedger", "latest_per_group"]
