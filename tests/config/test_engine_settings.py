"""
Tests for engine settings loading and validation.

Covers:
- Packaged defaults match the built-in dataclass defaults
- ``engine:`` section and flat layouts
- Unknown keys and invalid values raise ConfigurationError
- Checksum determinism and the engine_config_loaded audit record
- Services built without explicit settings load the active config
"""

from decimal import Decimal

import pytest

import agency_config
from agency_config import DEFAULT_CONFIG_PATH, get_active_config
from agency_config.loader import compute_checksum, load_yaml_file, parse_settings
from agency_config.schema import EngineSettings
from agency_kernel.domain.status import EntityKind
from agency_kernel.exceptions import ConfigurationError
from agency_services.cascade_dispatcher import CascadeDispatcher
from agency_services.status_workflow import StatusWorkflowService


class TestDefaults:
    def test_packaged_defaults_equal_builtin_defaults(self):
        assert get_active_config() == EngineSettings()

    def test_default_values(self):
        settings = EngineSettings()
        assert settings.commission_rate == Decimal("0.10")
        assert settings.counsellor_cap == 2
        assert settings.amount_quantum == Decimal("0.01")

    def test_defaults_file_has_engine_section(self):
        assert "engine" in load_yaml_file(DEFAULT_CONFIG_PATH)

    def test_empty_mapping_gives_defaults(self):
        assert parse_settings({}) == EngineSettings()


class TestParseSettings:
    def test_engine_section(self):
        settings = parse_settings({"engine": {"commission_rate": "0.15", "counsellor_cap": 3}})
        assert settings.commission_rate == Decimal("0.15")
        assert settings.counsellor_cap == 3

    def test_flat_layout(self):
        assert parse_settings({"counsellor_cap": 5}).counsellor_cap == 5

    def test_float_rate_goes_through_str(self):
        assert parse_settings({"commission_rate": 0.1}).commission_rate == Decimal("0.1")

    def test_custom_note_template(self):
        settings = parse_settings({"commission_created_note": "Auto commission {amount}"})
        assert settings.commission_created_note == "Auto commission {amount}"

    @pytest.mark.parametrize(
        "data,field_name",
        [
            ({"commision_rate": "0.1"}, "commision_rate"),
            ({"commission_rate": "1.5"}, "commission_rate"),
            ({"commission_rate": "-0.1"}, "commission_rate"),
            ({"commission_rate": "ten percent"}, "commission_rate"),
            ({"commission_rate": True}, "commission_rate"),
            ({"counsellor_cap": 0}, "counsellor_cap"),
            ({"counsellor_cap": "2"}, "counsellor_cap"),
            ({"counsellor_cap": True}, "counsellor_cap"),
            ({"amount_quantum": "0"}, "amount_quantum"),
            ({"transaction_created_note": "   "}, "transaction_created_note"),
            ({"engine": ["commission_rate"]}, "engine"),
        ],
    )
    def test_invalid_settings_rejected(self, data, field_name):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_settings(data)
        assert exc_info.value.field_name == field_name
        assert exc_info.value.code == "CONFIGURATION_ERROR"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "missing.yaml")


class TestChecksum:
    def test_deterministic(self):
        assert compute_checksum(EngineSettings()) == compute_checksum(EngineSettings())

    def test_changes_with_rate(self):
        assert compute_checksum(EngineSettings()) != compute_checksum(
            EngineSettings(commission_rate=Decimal("0.12"))
        )


class TestActiveConfig:
    def test_loads_custom_file(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("engine:\n  commission_rate: '0.20'\n  counsellor_cap: 4\n")
        settings = get_active_config(path)
        assert settings.commission_rate == Decimal("0.20")
        assert settings.counsellor_cap == 4

    def test_emits_config_loaded_record(self, captured_logs):
        settings = get_active_config()
        records = [r for r in captured_logs() if r["message"] == "engine_config_loaded"]
        assert len(records) == 1
        assert records[0]["checksum"] == compute_checksum(settings)
        assert records[0]["commission_rate"] == "0.10"
        assert records[0]["counsellor_cap"] == 2


class TestServicesLoadActiveConfig:
    @pytest.fixture
    def active_rate_020(self, tmp_path, monkeypatch):
        path = tmp_path / "engine.yaml"
        path.write_text("engine:\n  commission_rate: '0.20'\n")
        monkeypatch.setattr(agency_config, "DEFAULT_CONFIG_PATH", path)
        return path

    def test_dispatcher_without_settings_uses_active_config(self, active_rate_020, store, deterministic_clock):
        txn = store.insert_entity(
            EntityKind.TRANSACTION,
            {
                "application_id": "app-cfg",
                "student_name": "Sita Rai",
                "amount": Decimal("50000.00"),
                "status": "Completed",
                "agent_id": "agent-1",
                "subagent_id": "sub-1",
            },
        )
        outcome = CascadeDispatcher(store, clock=deterministic_clock).on_transaction_status_changed(
            txn, "Completed",
        )
        assert outcome.amount == Decimal("10000.00")

    def test_workflow_without_settings_uses_active_config(
        self, active_rate_020, session, deterministic_clock, hierarchy, catalog, make_application, captured_logs,
    ):
        workflow = StatusWorkflowService(session, clock=deterministic_clock)
        app = make_application(status="Documents Uploaded", subagent_id="sub-1")
        txn_id = workflow.change_application_status(hierarchy.agent, app.id, "Completed").cascade.target_id

        result = workflow.change_transaction_status(hierarchy.agent, txn_id, "Completed")

        assert result.cascade.amount == Decimal("10000.00")
        loaded = [r for r in captured_logs() if r["message"] == "engine_config_loaded"]
        assert loaded and loaded[0]["config_path"] == str(active_rate_020)
