"""Configuration profile for the revokr command line."""

import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .core.errors import ConfigFileError

LOG_LEVELS = ("debug", "info", "warning", "error")


class RevokrConfig(BaseModel):
    """Default values for command line options.

    Paths are resolved relative to the directory holding the config file.
    """

    crt: Optional[Path] = Field(default=None, description="Issuer certificate")
    key: Optional[Path] = Field(default=None, description="Issuer private key")
    serials: Optional[Path] = Field(default=None, description="Serials to revoke")
    ignore: Optional[Path] = Field(default=None, description="Serials to ignore")
    extend: list[Path] = Field(default_factory=list, description="Prior CRLs to extend")
    out: Optional[Path] = Field(default=None, description="Output file")
    digest: Optional[Path] = Field(default=None, description="TBS digest output file")
    pem: bool = Field(default=False, description="Write PEM instead of DER")
    log_level: str = Field(default="warning", description="Logging level")

    model_config = {"extra": "forbid"}

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        v = v.lower()
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return v

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level.upper())

    def _resolved(self, base: Path) -> "RevokrConfig":
        def resolve(p: Optional[Path]) -> Optional[Path]:
            if p is None or p.is_absolute():
                return p
            return base / p

        return self.model_copy(
            update={
                "crt": resolve(self.crt),
                "key": resolve(self.key),
                "serials": resolve(self.serials),
                "ignore": resolve(self.ignore),
                "extend": [resolve(p) for p in self.extend],
                "out": resolve(self.out),
                "digest": resolve(self.digest),
            }
        )

    @classmethod
    def from_file(cls, config_path: str | Path) -> "RevokrConfig":
        """Load a configuration profile from a YAML file.

        Args:
            config_path: Path to YAML config file

        Returns:
            RevokrConfig instance

        Raises:
            ConfigFileError: If config file cannot be loaded or parsed
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigFileError(f"Config file not found: {config_path}")

        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigFileError(f"Failed to load config file: {e}")

        if not isinstance(data, dict):
            raise ConfigFileError(f"Config file must hold a mapping: {config_path}")

        try:
            config = cls.model_validate(data)
        except ValidationError as e:
            raise ConfigFileError(f"Invalid config file {config_path}: {e}")

        return config._resolved(config_path.parent)

    def pick(self, name: str, value: Any) -> Any:
        """Return an explicit command line value, or the configured default.

        None and an empty tuple mean the option was not given. An explicit
        False (such as --der) still wins over the profile.
        """
        if value is None or value == ():
            return getattr(self, name)
        return value
