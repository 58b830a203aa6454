"""Generator config parsing and model."""

import tomllib
from enum import StrEnum, auto
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Self

from pydantic import (
    BaseModel,
    Field,
    PostgresDsn,
    StringConstraints,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from argminmax.domain.roster import DEFAULT_ROSTER, TypeRoster

SchemaName = Annotated[str, StringConstraints(pattern=r"^[a-z_][a-z0-9_]*$")]


class DatabaseConfig(BaseModel):
    """Database configuration, only needed to execute artifacts."""

    db_fqdn: str | None = None
    db_user: str | None = None
    db_pass: str | None = None
    db_name: str | None = None
    db_url: PostgresDsn | None = None
    ssl_mode: str = "prefer"

    @property
    def connection_string(self) -> str:
        """Return the connection string for the database."""
        if self.db_url:
            url = str(self.db_url)
        else:
            url = f"postgresql+asyncpg://{self.db_user}:{self.db_pass}@{self.db_fqdn}/{self.db_name}"  # noqa: E501

        # ssl prefer allows us to connect locally without SSL, overwritable if needed
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}ssl={self.ssl_mode}"

    @model_validator(mode="after")
    def validate_parameters(self) -> Self:
        """Validate the given parameters."""
        if self.db_url:
            if any((self.db_fqdn, self.db_user, self.db_pass, self.db_name)):
                msg = "If db_url is provided, nothing else should be provided."
                raise ValueError(msg)
        elif not all((self.db_fqdn, self.db_user, self.db_pass, self.db_name)):
            msg = """
If db_url is not provided, db_fqdn, db_user, db_pass and db_name must be provided."""
            raise ValueError(msg)
        return self


class Environment(StrEnum):
    """Environment enum."""

    PRODUCTION = auto()
    DEVELOPMENT = auto()
    LOCAL = auto()
    TEST = auto()


class LogLevel(StrEnum):
    """Log level enum."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()


class Settings(BaseSettings):
    """Settings model for the generator."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="argminmax_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    project_root: Path = Path(__file__).joinpath("../../..").resolve()

    roster: TypeRoster = Field(
        default=DEFAULT_ROSTER,
        description="Types to generate arg_min/arg_max aggregates for, in order.",
    )
    schema_name: SchemaName = Field(
        default="public",
        description="Schema the generated objects are created in.",
    )
    output_dir: Path = Field(
        default=Path(),
        description="Directory the artifacts are written to, relative to the cwd.",
    )

    db_config: DatabaseConfig | None = None

    env: Environment = Field(
        default=Environment.PRODUCTION,
        description="The environment the generator is running in.",
    )

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="The log level for the generator.",
    )

    @property
    def running_locally(self) -> bool:
        """Return True if the generator is running locally."""
        return self.env in (Environment.LOCAL, Environment.TEST)

    @property
    def pyproject_toml(self) -> dict[str, Any]:
        """Get the contents of pyproject.toml."""
        with (self.project_root / "pyproject.toml").open("rb") as handle:
            return tomllib.load(handle)

    @property
    def app_version(self) -> str:
        """Get the generator version from pyproject.toml."""
        return self.pyproject_toml["project"]["version"]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get a cached settings object."""
    return Settings()
