"""Load configuration from toml file and make available."""

from pathlib import Path
from typing import Any

import toml

SRC_BASE_DIR: Path = Path(__file__).parent.parent

LOGGING_LEVEL: str = "WARNING"
COLUMN_TYPE: str = "agtype"
FALLBACK_COLUMN: str = "result"
PARAMETER_PLACEHOLDER: str = "%s"
AGTYPE_VERSIONED_ENVELOPE: bool = False

config_file: Path = SRC_BASE_DIR / "config" / "config.toml"
with open(config_file, "r", encoding="utf8") as f:
    config: dict[Any, Any] = toml.load(f)

for key, value in config["global"].items():
    globals()[key] = value

globals()["SRC_BASE_DIR"] = SRC_BASE_DIR
