"""ConfigManager: environment profiles and registry wiring."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from compliance_monitor.audit.log import AuditLogger
from compliance_monitor.config import (
    CONFIG_DIR_NAME,
    DEFAULT_AUDIT_DB,
    DEFAULT_START_HEIGHT,
    DEFAULT_LEDGER_DB,
    LOG_FORMAT,
)
from compliance_monitor.registry.clock import BlockClock
from compliance_monitor.registry.core import ComplianceRegistry
from compliance_monitor.registry.store import LedgerStore

logger = logging.getLogger(__name__)

# All known configuration keys with defaults
_CONFIG_KEYS: dict[str, dict[str, Any]] = {
    "CM_ENV": {"default": "development", "description": "Environment profile"},
    "CM_LOG_LEVEL": {"default": "INFO", "description": "Logging level"},
    "CM_LEDGER_DB": {"default": str(DEFAULT_LEDGER_DB), "description": "Ledger database path"},
    "CM_AUDIT_DB": {"default": str(DEFAULT_AUDIT_DB), "description": "Audit database path"},
    "CM_START_HEIGHT": {
        "default": str(DEFAULT_START_HEIGHT),
        "description": "Block height of a fresh registry",
    },
}

_PROFILES: dict[str, dict[str, str]] = {
    "development": {
        "CM_ENV": "development",
        "CM_LOG_LEVEL": "DEBUG",
    },
    "production": {
        "CM_ENV": "production",
        "CM_LOG_LEVEL": "WARNING",
    },
    "testing": {
        "CM_ENV": "testing",
        "CM_LOG_LEVEL": "DEBUG",
        "CM_LEDGER_DB": ":memory:",
        "CM_AUDIT_DB": ":memory:",
    },
}


def configure_logging(level: str | int = "INFO") -> None:
    """Configure the package logger at *level* (name or number)."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    pkg_logger = logging.getLogger("compliance_monitor")
    pkg_logger.setLevel(level)
    if not pkg_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        pkg_logger.addHandler(handler)


class ConfigManager:
    """Manage compliance-monitor configuration across environments."""

    def generate_env_template(self, project_path: str | Path) -> Path:
        """Create .env.example with all config keys.

        Returns the path to the generated file.
        """
        root = Path(project_path)
        env_path = root / ".env.example"

        lines = ["# Compliance Monitor Configuration Template", "# Copy to .env and fill in values", ""]
        for key, info in _CONFIG_KEYS.items():
            lines.append(f"# {info['description']}")
            lines.append(f"{key}={info['default']}")
            lines.append("")

        env_path.write_text("\n".join(lines), encoding="utf-8")
        return env_path

    def load_config(self, project_path: str | Path) -> dict[str, str]:
        """Load merged config: defaults -> profile -> config.json -> .env -> env vars.

        Returns a flat dict of configuration values.
        """
        root = Path(project_path)
        config: dict[str, str] = {}

        # 1. Defaults
        for key, info in _CONFIG_KEYS.items():
            config[key] = str(info["default"])

        # 2. Profile overrides
        env_name = os.environ.get("CM_ENV", config.get("CM_ENV", "development"))
        config.update(_PROFILES.get(env_name, {}))

        # 3. .compliance_monitor/config.json
        config_json = root / CONFIG_DIR_NAME / "config.json"
        if config_json.is_file():
            try:
                data = json.loads(config_json.read_text(encoding="utf-8"))
                for k, v in data.items():
                    config[k] = str(v)
            except (json.JSONDecodeError, OSError):
                logger.debug("Could not read config.json", exc_info=True)

        # 4. .env file
        env_file = root / ".env"
        if env_file.is_file():
            try:
                for line in env_file.read_text(encoding="utf-8").splitlines():
                    line = line.strip()
                    if not line or line.startswith("#"):
                        continue
                    if "=" in line:
                        k, v = line.split("=", 1)
                        config[k.strip()] = v.strip()
            except OSError:
                logger.debug("Could not read .env", exc_info=True)

        # 5. Environment variables override all
        for key in _CONFIG_KEYS:
            env_val = os.environ.get(key)
            if env_val is not None:
                config[key] = env_val

        return config

    def build_registry(self, project_path: str | Path) -> ComplianceRegistry:
        """Wire a registry (clock, ledger store, audit log) from the loaded config.

        Relative database paths are resolved against *project_path*.
        ``CM_START_HEIGHT`` only applies to a fresh ledger; a reloaded one
        resumes from the height of its last saved transition when that is
        higher.
        """
        root = Path(project_path)
        config = self.load_config(root)
        configure_logging(config["CM_LOG_LEVEL"])

        try:
            start = int(config["CM_START_HEIGHT"])
        except ValueError:
            raise ValueError(
                f"CM_START_HEIGHT must be an integer, got {config['CM_START_HEIGHT']!r}"
            ) from None

        registry = ComplianceRegistry(
            clock=BlockClock(start=start),
            store=LedgerStore(_resolve_db(root, config["CM_LEDGER_DB"])),
            audit=AuditLogger(_resolve_db(root, config["CM_AUDIT_DB"])),
        )
        logger.info("Registry ready (env=%s, height=%d)", config["CM_ENV"], registry.height)
        return registry


def _resolve_db(root: Path, value: str) -> str:
    if value == ":memory:":
        return value
    path = Path(value)
    if not path.is_absolute():
        path = root / path
    path.parent.mkdir(parents=True, exist_ok=True)
    return str(path)
