"""Runtime configuration loaded from YAML.

Values from the config file are layered over compiled-in defaults. An empty
path or a missing file yields the defaults; command-line flags override
both.

Example
-------
    default_format: jsonl
    default_timeout: 60
    output_file: /tmp/telenoise.jsonl
    audit_log: /tmp/telenoise-audit.jsonl
    continue_on_error: true
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from telenoise.errors import ConfigurationError
from telenoise.telemetry.emitter import OutputFormat

__all__ = ["Config", "load_config"]


@dataclass
class Config:
    """Runtime configuration.

    Attributes
    ----------
    default_format : str
        Telemetry output format, "human" or "jsonl".
    default_timeout : int
        Per-action generate timeout in seconds; 0 is unbounded.
    output_file : str
        File receiving a copy of the telemetry stream, empty for none.
    audit_log : str
        Audit log path, empty to disable auditing.
    continue_on_error : bool
        Keep running scenario steps after one fails.
    """

    default_format: str = OutputFormat.HUMAN.value
    default_timeout: int = 30
    output_file: str = ""
    audit_log: str = ""
    continue_on_error: bool = False

    def __post_init__(self) -> None:
        """Validate."""
        valid_formats = [f.value for f in OutputFormat]
        if self.default_format not in valid_formats:
            raise ConfigurationError(
                f"config: default_format must be one of {valid_formats}, got {self.default_format!r}"
            )

        if isinstance(self.default_timeout, bool) or not isinstance(self.default_timeout, int):
            raise ConfigurationError(
                f"config: default_timeout must be an integer, got {self.default_timeout!r}"
            )
        if self.default_timeout < 0:
            raise ConfigurationError(
                f"config: default_timeout must be >= 0, got {self.default_timeout}"
            )

        self.output_file = str(self.output_file or "")
        self.audit_log = str(self.audit_log or "")
        self.continue_on_error = bool(self.continue_on_error)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


def load_config(path: Path | str | None) -> Config:
    """Load configuration from a YAML file.

    Parameters
    ----------
    path : Path | str | None
        Config file. Empty, None, or a missing file yields defaults.

    Returns
    -------
    Config
        Loaded configuration. Unknown keys are ignored.

    Raises
    ------
    ConfigurationError
        If the file cannot be read or parsed, or holds invalid values.
    """
    if not path:
        return Config()

    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Config()
    except OSError as e:
        raise ConfigurationError(f"config: read {path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"config: parse {path}: {e}") from e

    if data is None:
        return Config()
    if not isinstance(data, dict):
        raise ConfigurationError(f"config: {path} must be a mapping")

    known = {f.name for f in fields(Config)}
    return Config(**{k: v for k, v in data.items() if k in known})
