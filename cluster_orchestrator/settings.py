"""Operator settings."""

from pathlib import Path

from pydantic import BaseModel, field_validator

from cluster_orchestrator.exceptions import ConfigurationError


class OperatorSettings(BaseModel):
    """Runtime settings of the orchestrator process."""

    namespace: str = "default"
    kubeconfig: str | None = None
    resync_interval: float = 30.0
    tick_timeout: float | None = 120.0
    fetch_workers: int = 4
    drain_grace_period: int = 60
    log_level: str = "INFO"
    log_file: str | None = None

    @field_validator("resync_interval")
    @classmethod
    def validate_resync_interval(cls, v: float) -> float:
        """Validate resync interval is positive."""
        if v <= 0:
            raise ValueError("resync_interval must be positive")
        return v

    @field_validator("fetch_workers")
    @classmethod
    def validate_fetch_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError("fetch_workers must be at least 1")
        return v

    @field_validator("drain_grace_period")
    @classmethod
    def validate_drain_grace_period(cls, v: int) -> int:
        if v < 0:
            raise ValueError("drain_grace_period cannot be negative")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a standard logging level name."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got '{v}'")
        return v.upper()

    def save(self, path: str | Path) -> None:
        """Save settings to YAML file."""
        import yaml

        with open(path, "w") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False)

    @classmethod
    def load(cls, path: str | Path) -> "OperatorSettings":
        """Load settings from YAML file.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        import yaml
        from pydantic import ValidationError

        settings_path = Path(path)
        if not settings_path.exists():
            raise ConfigurationError(
                f"Settings file not found: {settings_path}",
                "Create the file or omit --settings to use defaults",
            )

        try:
            with open(settings_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse settings file: {settings_path}", str(e))

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings in {settings_path}", str(e))
