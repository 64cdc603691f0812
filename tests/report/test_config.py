"""
Tests for budget report configuration.

Verifies config validation, defaults, and factory methods.
NO database required.
"""

from __future__ import annotations

import pytest
import yaml

from budget_kernel.domain.documents import CommitmentType
from budget_kernel.exceptions import ConfigurationError
from budget_report.config import BudgetReportConfig


class TestBudgetReportConfig:

    def test_defaults(self):
        config = BudgetReportConfig.with_defaults()
        assert config.estimate_status == "Approved"
        assert config.invoice_status == "Paid"
        assert config.commitment_statuses == ("approved", "partially_received", "completed")
        assert config.commitment_type is CommitmentType.MATERIAL
        assert config.max_display_depth == 3
        assert config.fetch_workers == 1
        assert config.include_zero_rows is False

    def test_statuses_normalized(self):
        config = BudgetReportConfig(commitment_statuses=(" Approved ", "ISSUED"))
        assert config.commitment_statuses == ("approved", "issued")

    def test_commitment_type_case_insensitive(self):
        config = BudgetReportConfig(default_commitment_type="labor")
        assert config.default_commitment_type == "LABOR"
        assert config.commitment_type is CommitmentType.LABOR

    @pytest.mark.parametrize("kwargs", [
        {"commitment_statuses": "approved"},
        {"commitment_statuses": ()},
        {"commitment_statuses": ("approved", " ")},
        {"estimate_status": ""},
        {"invoice_status": "  "},
        {"default_commitment_type": "RENTAL"},
        {"default_commitment_type": ""},
        {"max_display_depth": 0},
        {"fetch_workers": 0},
        {"fetch_workers": True},
        {"fetch_workers": 2.5},
        {"include_zero_rows": "yes"},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ConfigurationError):
            BudgetReportConfig(**kwargs)

    def test_error_names_field(self):
        with pytest.raises(ConfigurationError) as exc_info:
            BudgetReportConfig(fetch_workers=-1)
        assert exc_info.value.field_name == "fetch_workers"
        assert exc_info.value.code == "INVALID_CONFIGURATION"


class TestFactories:

    def test_from_dict(self):
        config = BudgetReportConfig.from_dict({
            "commitment_statuses": ["approved"],
            "fetch_workers": 4,
        })
        assert config.commitment_statuses == ("approved",)
        assert config.fetch_workers == 4

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ConfigurationError) as exc_info:
            BudgetReportConfig.from_dict({"fetch_worker": 4})
        assert exc_info.value.field_name == "fetch_worker"

    def test_from_yaml_section(self, tmp_path):
        path = tmp_path / "report.yaml"
        path.write_text(yaml.safe_dump({
            "budget_report": {
                "max_display_depth": 2,
                "include_zero_rows": True,
                "commitment_statuses": ["Approved", "Completed"],
            },
        }))

        config = BudgetReportConfig.from_yaml(path)

        assert config.max_display_depth == 2
        assert config.include_zero_rows is True
        assert config.commitment_statuses == ("approved", "completed")

    def test_from_yaml_top_level(self, tmp_path):
        path = tmp_path / "report.yaml"
        path.write_text("invoice_status: Settled\n")

        assert BudgetReportConfig.from_yaml(path).invoice_status == "Settled"

    def test_from_yaml_empty_file(self, tmp_path):
        path = tmp_path / "report.yaml"
        path.write_text("")

        assert BudgetReportConfig.from_yaml(path) == BudgetReportConfig()

    def test_from_yaml_rejects_non_mapping(self, tmp_path):
        path = tmp_path / "report.yaml"
        path.write_text("- approved\n- completed\n")

        with pytest.raises(ConfigurationError):
            BudgetReportConfig.from_yaml(path)

    def test_from_yaml_rejects_non_mapping_section(self, tmp_path):
        path = tmp_path / "report.yaml"
        path.write_text("budget_report: 3\n")

        with pytest.raises(ConfigurationError):
            BudgetReportConfig.from_yaml(path)
