"""Tests for configuration loading and registry wiring."""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

import pytest

from compliance_monitor.config_manager import ConfigManager, configure_logging

ADMIN = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
RESIDENT = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"
INSPECTOR = "ST3NBRSFKX28FQ2ZJ1MAKX58HKHSDGNV5N7R21XCP"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("CM_ENV", "CM_LOG_LEVEL", "CM_LEDGER_DB", "CM_AUDIT_DB", "CM_START_HEIGHT"):
        monkeypatch.delenv(key, raising=False)


class TestConfigManager:

    def test_generate_env_template(self):
        mgr = ConfigManager()
        with tempfile.TemporaryDirectory() as d:
            path = mgr.generate_env_template(d)
            assert path.is_file()
            content = path.read_text()
            assert "CM_ENV" in content
            assert "CM_LEDGER_DB" in content
            assert "CM_AUDIT_DB" in content
            assert "CM_START_HEIGHT=0" in content

    def test_load_config_defaults(self):
        mgr = ConfigManager()
        with tempfile.TemporaryDirectory() as d:
            config = mgr.load_config(d)
            assert config["CM_ENV"] == "development"
            assert config["CM_LOG_LEVEL"] == "DEBUG"
            assert config["CM_START_HEIGHT"] == "0"

    def test_testing_profile_uses_memory(self, monkeypatch):
        monkeypatch.setenv("CM_ENV", "testing")
        with tempfile.TemporaryDirectory() as d:
            config = ConfigManager().load_config(d)
        assert config["CM_LEDGER_DB"] == ":memory:"
        assert config["CM_AUDIT_DB"] == ":memory:"

    def test_load_config_merges_json_and_env_file(self, monkeypatch):
        with tempfile.TemporaryDirectory() as d:
            cfg_dir = Path(d) / ".compliance_monitor"
            cfg_dir.mkdir()
            (cfg_dir / "config.json").write_text(
                json.dumps({"CM_START_HEIGHT": 500, "CUSTOM_KEY": "custom"})
            )
            (Path(d) / ".env").write_text("# comment\nCM_LOG_LEVEL=WARNING\n")
            monkeypatch.setenv("CM_START_HEIGHT", "900")

            config = ConfigManager().load_config(d)
        assert config["CUSTOM_KEY"] == "custom"
        assert config["CM_LOG_LEVEL"] == "WARNING"
        assert config["CM_START_HEIGHT"] == "900"

    def test_corrupt_config_json_ignored(self):
        with tempfile.TemporaryDirectory() as d:
            cfg_dir = Path(d) / ".compliance_monitor"
            cfg_dir.mkdir()
            (cfg_dir / "config.json").write_text("{not json")
            config = ConfigManager().load_config(d)
        assert config["CM_ENV"] == "development"

    def test_build_registry_persists_between_runs(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CM_START_HEIGHT", "12345")
        mgr = ConfigManager()

        reg = mgr.build_registry(tmp_path)
        assert reg.height == 12345
        reg.initialize(sender=ADMIN)
        reg.set_property_details(1, ADMIN, 1000, sender=ADMIN)
        reg.store.close()
        reg.audit.close()

        assert (tmp_path / ".compliance_monitor" / "ledger.db").is_file()

        again = mgr.build_registry(tmp_path)
        assert again.admin == ADMIN
        assert again.get_property_details(1).rent_amount == 1000
        assert again.audit.count() == 2
        again.store.close()
        again.audit.close()

    def test_build_registry_resumes_saved_height(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CM_START_HEIGHT", "12345")
        mgr = ConfigManager()

        reg = mgr.build_registry(tmp_path)
        reg.initialize(sender=ADMIN)
        reg.add_inspector(INSPECTOR, sender=ADMIN)
        reg.set_property_details(1, ADMIN, 1000, sender=ADMIN)
        reg.register_occupancy(1, RESIDENT, 22345, sender=ADMIN)
        reg.clock.set_height(30000)
        reg.perform_compliance_check(1, RESIDENT, "compliant", False, sender=INSPECTOR)
        reg.store.close()
        reg.audit.close()

        monkeypatch.setenv("CM_START_HEIGHT", "0")
        again = mgr.build_registry(tmp_path)
        assert again.height == 30000
        assert again.is_lease_expired(1, RESIDENT) is True

        occ = again.perform_compliance_check(1, RESIDENT, "non-compliant", True, sender=INSPECTOR)
        assert occ.last_compliance_check >= occ.move_in_date
        assert [e.block_height for e in again.history(1, RESIDENT)] == [12345, 30000, 30000]
        again.store.close()
        again.audit.close()

    def test_build_registry_bad_height(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CM_START_HEIGHT", "soon")
        with pytest.raises(ValueError):
            ConfigManager().build_registry(tmp_path)


class TestConfigureLogging:

    def test_sets_package_level(self):
        configure_logging("warning")
        assert logging.getLogger("compliance_monitor").level == logging.WARNING
        configure_logging(logging.DEBUG)
        assert logging.getLogger("compliance_monitor").level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        configure_logging("chatty")
        assert logging.getLogger("compliance_monitor").level == logging.INFO
