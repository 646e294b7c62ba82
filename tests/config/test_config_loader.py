"""
Configuration loading: bundled defaults, file resolution and rejection of
malformed values.
"""

import pytest

from ops_config import CONFIG_ENV_VAR, get_active_config, load_config
from ops_config.schema import ALL_MODULES, ConsoleConfig
from ops_kernel.exceptions import ConfigError


class TestBundledDefaults:
    def test_default_set_matches_schema_defaults(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        config = get_active_config()

        assert config.leave.quotas["annual"] == 14
        assert config.leave.prorated == frozenset({"annual", "sick", "casual", "alternate_day_off"})
        assert config.payroll.day_basis == 30
        assert config.supply_chain.store_department == "Store"
        assert config.workflow.enforce_roles is True
        assert config.modules.all_modules == ALL_MODULES
        assert config.store.backend == "memory"

    def test_config_trace_logged(self, monkeypatch, captured_logs):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        get_active_config()

        trace = next(r for r in captured_logs() if r["message"] == "CONFIG_TRACE")
        assert trace["source"].endswith("default.yaml")
        assert trace["store_backend"] == "memory"


class TestFileResolution:
    def test_environment_variable(self, tmp_path, monkeypatch):
        path = tmp_path / "console.yaml"
        path.write_text("payroll:\n  day_basis: 26\n  currency: USD\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        config = get_active_config()

        assert config.payroll.day_basis == 26
        assert config.payroll.currency == "USD"
        # Sections absent from the file keep their defaults.
        assert config.leave.quotas["sick"] == 7

    def test_explicit_path_beats_environment(self, tmp_path, monkeypatch):
        explicit = tmp_path / "explicit.yaml"
        explicit.write_text("workflow:\n  enforce_roles: false\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "missing.yaml"))

        assert get_active_config(explicit).workflow.enforce_roles is False

    def test_empty_file_is_all_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == ConsoleConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path / "nope.yaml")
        assert exc_info.value.code == "CONFIG_ERROR"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("leave: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config(path)


class TestValidation:
    @pytest.mark.parametrize("data", [
        {"ledger": {}},
        {"leave": {"carry_forward": True}},
        {"leave": {"quotas": {"annual": -1}}},
        {"leave": {"prorated": ["bereavement"]}},
        {"payroll": {"day_basis": 0}},
        {"payroll": {"day_basis": "30"}},
        {"supply_chain": {"store_department": "  "}},
        {"workflow": {"enforce_roles": "yes"}},
        {"modules": {"all_modules": "hr"}},
        {"store": {"backend": "mongo"}},
        {"store": {"url": ""}},
        {"logging": {"level": "VERBOSE"}},
        {"payroll": [30]},
    ])
    def test_rejected(self, data):
        with pytest.raises(ConfigError):
            ConsoleConfig.from_dict(data)

    def test_top_level_must_be_mapping(self):
        with pytest.raises(ConfigError):
            ConsoleConfig.from_dict(["leave"])

    def test_custom_quotas_replace_defaults(self):
        config = ConsoleConfig.from_dict({"leave": {"quotas": {"annual": 20, "sick": 10}, "prorated": ["annual"]}})

        assert config.leave.quotas == {"annual": 20, "sick": 10}
        assert config.leave.prorated == frozenset({"annual"})

    def test_log_level_case_insensitive(self):
        assert ConsoleConfig.from_dict({"logging": {"level": "debug"}}).logging.level == "DEBUG"
