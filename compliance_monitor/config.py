"""Global configuration: paths, constants, settings."""

from pathlib import Path

# Per-project configuration folder
CONFIG_DIR_NAME = ".compliance_monitor"

# Default on-disk locations, relative to the project root
DEFAULT_LEDGER_DB = Path(CONFIG_DIR_NAME) / "ledger.db"
DEFAULT_AUDIT_DB = Path(CONFIG_DIR_NAME) / "audit.db"

# Block height a fresh registry starts at
DEFAULT_START_HEIGHT = 0

# Log format used by configure_logging()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
