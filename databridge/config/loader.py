"""
Configuration Loader

Handles loading and validating YAML/JSON configuration files for the
client and migration plan files for starting jobs.
Supports environment variable substitution for sensitive values.
"""

import os
import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from dotenv import load_dotenv

from databridge.contracts import MigrationJobRequest, MigrationTableMapping


# Load environment variables from .env file if present
load_dotenv()

DEFAULT_BASE_URL = "http://localhost:8000"
BASE_URL_ENV = "DATABRIDGE_API_URL"
TOKEN_ENV = "DATABRIDGE_TOKEN"


class ApiConfig(BaseModel):
    """Backend connection settings."""

    base_url: str = Field(default=DEFAULT_BASE_URL, description="Backend base URL")
    token: str | None = Field(default=None, description="Optional bearer token")
    timeout: float = Field(default=30.0, ge=1, le=600, description="Request timeout in seconds")
    retry_attempts: int = Field(default=1, ge=1, le=10, description="Attempts on transport failure")
    retry_delay: float = Field(default=1.0, ge=0.0, le=60.0, description="Delay between attempts")
    headers: dict[str, str] = Field(default_factory=dict, description="Extra request headers")

    @field_validator("base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensure URL is valid and normalize."""
        v = v.rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v

    @field_validator("token", mode="before")
    @classmethod
    def empty_token(cls, v: Any) -> Any:
        if v == "":
            return None
        return v


class PollingConfig(BaseModel):
    """Refresh intervals for job monitoring."""

    status_interval: float = Field(default=3.0, gt=0, le=300, description="Seconds between status polls")
    logs_interval_factor: int = Field(default=2, ge=1, le=20, description="Logs are polled every N status intervals")
    log_limit: int = Field(default=100, ge=1, le=10000, description="Log lines per fetch")
    dashboard_interval: float = Field(default=5.0, gt=0, le=600, description="Seconds between dashboard refreshes")


class ApplicationsConfig(BaseModel):
    """Application browsing defaults."""

    page_size: int = Field(default=50, ge=1, le=1000)
    sort_by: str = Field(default="application_name")
    sort_order: Literal["asc", "desc"] = Field(default="asc")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    output_dir: str = Field(default="./logs", description="Log output directory")
    export_json: bool = Field(default=True, description="Export logs as JSON")
    export_csv: bool = Field(default=True, description="Export logs as CSV")
    console_progress: bool = Field(default=True, description="Show console progress")


class DataBridgeConfig(BaseModel):
    """Root configuration for the client."""

    api: ApiConfig = Field(default_factory=ApiConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    applications: ApplicationsConfig = Field(default_factory=ApplicationsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class MigrationPlan(BaseModel):
    """
    A migration job described in a file.

    Table mappings come either inline or from a CSV/Excel sheet
    referenced by ``mappings_file``.
    """

    source_connection_id: str = Field(..., min_length=1)
    destination_connection_id: str = Field(..., min_length=1)
    application_ids: list[str] = Field(..., min_length=1)
    table_mappings: list[MigrationTableMapping] = Field(default_factory=list)
    mappings_file: str | None = Field(default=None, description="CSV/Excel mapping sheet")
    mappings_sheet: str | None = Field(default=None, description="Excel sheet name")
    run_validations: bool = True
    batch_size: int = Field(default=1000, ge=1)
    timeout_seconds: int = Field(default=3600, ge=1)
    description: str | None = None

    @model_validator(mode="after")
    def check_mapping_source(self) -> "MigrationPlan":
        if not self.table_mappings and not self.mappings_file:
            raise ValueError("Plan needs table_mappings or a mappings_file")
        if self.table_mappings and self.mappings_file:
            raise ValueError("Use either table_mappings or mappings_file, not both")
        return self

    def to_request(
        self,
        table_mappings: list[MigrationTableMapping] | None = None,
    ) -> MigrationJobRequest:
        """
        Build the job request.

        Args:
            table_mappings: Mappings loaded from ``mappings_file``
                (inline mappings are used when omitted)
        """
        data: dict[str, Any] = {
            "source_connection_id": self.source_connection_id,
            "destination_connection_id": self.destination_connection_id,
            "application_ids": self.application_ids,
            "table_mappings": table_mappings if table_mappings is not None else self.table_mappings,
            "run_validations": self.run_validations,
            "batch_size": self.batch_size,
            "timeout_seconds": self.timeout_seconds,
        }
        if self.description:
            data["description"] = self.description
        return MigrationJobRequest(**data)


class ConfigLoader:
    """
    Loads and validates client configuration and migration plans.

    Supports environment variable substitution using ${VAR_NAME} syntax.

    Example:
        >>> loader = ConfigLoader()
        >>> config = loader.load("databridge.yaml")
        >>> print(config.api.base_url)
    """

    # Pattern for environment variable substitution
    ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")

    def __init__(self, env_file: Path | None = None):
        """
        Initialize config loader.

        Args:
            env_file: Optional path to .env file
        """
        if env_file:
            load_dotenv(env_file)

    def load(self, config_path: str | Path) -> DataBridgeConfig:
        """
        Load client configuration from file.

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        data = self._read(config_path)
        try:
            return DataBridgeConfig.model_validate(data)
        except Exception as e:
            raise ValueError(f"Configuration validation failed: {e}") from e

    def load_or_default(
        self,
        config_path: str | Path | None = None,
        base_url: str | None = None,
    ) -> DataBridgeConfig:
        """
        Load configuration, falling back to defaults.

        ``base_url`` (or ``DATABRIDGE_API_URL``) overrides the file, and a
        ``DATABRIDGE_TOKEN`` fills a missing token.
        """
        if config_path:
            config = self.load(config_path)
        else:
            config = DataBridgeConfig()

        override = base_url or os.environ.get(BASE_URL_ENV)
        if override:
            try:
                config.api = ApiConfig(**{**config.api.model_dump(), "base_url": override})
            except ValueError as e:
                raise ValueError(f"Invalid base URL: {e}") from e

        token = os.environ.get(TOKEN_ENV)
        if token and not config.api.token:
            config.api = config.api.model_copy(update={"token": token})

        return config

    def load_plan(self, plan_path: str | Path) -> MigrationPlan:
        """
        Load a migration plan.

        A relative ``mappings_file`` is resolved against the plan's folder.
        """
        path = Path(plan_path)
        data = self._read(path)
        try:
            plan = MigrationPlan.model_validate(data)
        except Exception as e:
            raise ValueError(f"Plan validation failed: {e}") from e

        if plan.mappings_file and not Path(plan.mappings_file).is_absolute():
            plan.mappings_file = str(path.parent / plan.mappings_file)
        return plan

    def _read(self, config_path: str | Path) -> dict[str, Any]:
        path = Path(config_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        content = path.read_text(encoding="utf-8")

        # Substitute environment variables
        content = self._substitute_env_vars(content)

        # Parse YAML (also handles JSON as subset of YAML)
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse configuration: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError("Configuration must be a dictionary")
        return data

    def _substitute_env_vars(self, content: str) -> str:
        """Replace ${VAR_NAME} with environment variable values."""
        def replace(match: re.Match[str]) -> str:
            var_name = match.group(1)
            value = os.environ.get(var_name)
            if value is None:
                raise ValueError(
                    f"Environment variable '{var_name}' is not set. "
                    f"Please set it or update the configuration."
                )
            return value

        return self.ENV_PATTERN.sub(replace, content)

    def validate_file(self, config_path: str | Path) -> list[str]:
        """Validate a configuration file and return any errors."""
        errors: list[str] = []

        try:
            self.load(config_path)
        except FileNotFoundError as e:
            errors.append(str(e))
        except ValueError as e:
            errors.append(str(e))

        return errors

    @staticmethod
    def create_example_config(output_path: str | Path) -> None:
        """Create an example configuration file."""
        example = {
            "api": {
                "base_url": DEFAULT_BASE_URL,
                "timeout": 30,
                "retry_attempts": 1,
            },
            "polling": {
                "status_interval": 3.0,
                "logs_interval_factor": 2,
                "log_limit": 100,
                "dashboard_interval": 5.0,
            },
            "applications": {
                "page_size": 50,
                "sort_by": "application_name",
                "sort_order": "asc",
            },
            "logging": {
                "level": "INFO",
                "output_dir": "./logs",
                "export_json": True,
                "export_csv": True,
            },
        }
        _dump_yaml(example, output_path)

    @staticmethod
    def create_example_plan(output_path: str | Path) -> None:
        """Create an example migration plan file."""
        example = {
            "source_connection_id": "<source-profile-id>",
            "destination_connection_id": "<destination-profile-id>",
            "application_ids": ["<application-id>"],
            "description": "Nightly CRM migration",
            "run_validations": True,
            "batch_size": 1000,
            "timeout_seconds": 3600,
            "table_mappings": [
                {
                    "source_table": "Customers",
                    "source_columns": ["id", "name", "email"],
                    "destination_table": "Customers",
                    "destination_columns": ["id", "full_name", "email"],
                    "transformation_rules": {"email": "lowercase"},
                },
            ],
        }
        _dump_yaml(example, output_path)


def _dump_yaml(data: dict[str, Any], output_path: str | Path) -> None:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
