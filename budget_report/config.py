"""
Budget Report Configuration Schema.

Defines the qualification statuses, presentation depth and fetch
concurrency of the budget-vs-actual report.  Loadable from a dict or a YAML
file; every value is validated on construction.

Example YAML::

    budget_report:
      commitment_statuses: [approved, partially_received, completed]
      max_display_depth: 3
      fetch_workers: 4
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Self

import yaml

from budget_kernel.domain.documents import CommitmentType
from budget_kernel.exceptions import ConfigurationError
from budget_kernel.logging_config import get_logger

logger = get_logger("report.config")

_SECTION = "budget_report"


@dataclass
class BudgetReportConfig:
    """
    Configuration schema for the budget report.

    Statuses follow the qualification rules of the aggregator: estimates
    and invoices match exactly, commitment statuses case-insensitively.
    """

    # Estimate status that counts towards the budget
    estimate_status: str = "Approved"

    # Purchase/change order statuses that count as committed
    commitment_statuses: tuple[str, ...] = (
        "approved", "partially_received", "completed",
    )

    # Invoice status that counts as paid
    invoice_status: str = "Paid"

    # Type assumed for purchase orders that state none
    default_commitment_type: str = CommitmentType.MATERIAL.value

    # Cost-code levels rendered by flatten_report
    max_display_depth: int = 3

    # Concurrent per-document sub-fetches (1 = sequential)
    fetch_workers: int = 1

    # Keep cost codes without any activity
    include_zero_rows: bool = False

    def __post_init__(self):
        if isinstance(self.commitment_statuses, str):
            raise ConfigurationError(
                "commitment_statuses", "must be a list of statuses, not a string",
            )
        statuses = tuple(str(s).strip().lower() for s in self.commitment_statuses)
        if not statuses or not all(statuses):
            raise ConfigurationError(
                "commitment_statuses", "must contain at least one non-blank status",
            )
        self.commitment_statuses = statuses

        for name in ("estimate_status", "invoice_status"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationError(name, "must be a non-blank string")

        parsed = CommitmentType.parse(str(self.default_commitment_type), CommitmentType.MATERIAL)
        if parsed is None or not str(self.default_commitment_type).strip():
            raise ConfigurationError(
                "default_commitment_type",
                f"must be one of {[t.value for t in CommitmentType]}",
            )
        self.default_commitment_type = parsed.value

        for name in ("max_display_depth", "fetch_workers"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigurationError(name, "must be a positive integer")

        if not isinstance(self.include_zero_rows, bool):
            raise ConfigurationError("include_zero_rows", "must be a boolean")

    @property
    def commitment_type(self) -> CommitmentType:
        return CommitmentType(self.default_commitment_type)

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("budget_report_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create config from a dictionary; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(", ".join(unknown), "unknown configuration key")
        values = dict(data)
        if isinstance(values.get("commitment_statuses"), list):
            values["commitment_statuses"] = tuple(values["commitment_statuses"])
        logger.info(
            "budget_report_config_loading_from_dict",
            extra={"keys": sorted(values.keys())},
        )
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """
        Load config from a YAML file.

        The file may hold the settings at top level or under a
        ``budget_report`` section.  Malformed YAML propagates as
        ``yaml.YAMLError``.
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(str(path), "top level must be a mapping")
        section = data.get(_SECTION, data)
        if not isinstance(section, dict):
            raise ConfigurationError(_SECTION, "section must be a mapping")
        logger.info("budget_report_config_loading_from_yaml", extra={"path": str(path)})
        return cls.from_dict(section)
