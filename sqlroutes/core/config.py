"""
Process settings and the YAML rule file.

- ``settings``: process-wide knobs from the environment / .env (pool size,
  timeouts, startup retry, logging, Sentry).
- ``load_config(path)``: reads the rule file, lets ``DB_*`` environment
  variables override its ``db`` section and normalizes every rule.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, HttpUrl, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from sqlroutes.core.errors import ConfigError
from sqlroutes.models import DriverEnum, MethodEnum, Rule

DEFAULT_PORT = 80

_DRIVER_ALIASES = {
    "sqlite": DriverEnum.SQLITE,
    "postgresql": DriverEnum.POSTGRES,
    "pgsql": DriverEnum.POSTGRES,
}

_DEFAULT_DB_PORTS = {
    DriverEnum.POSTGRES: 5432,
    DriverEnum.MYSQL: 3306,
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "sqlroutes"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    SENTRY_DSN: HttpUrl | None = None

    DB_POOL_SIZE: int = 5
    DB_POOL_MAX_AGE_SEC: float = 600.0
    DB_CONNECT_TIMEOUT: int = 10

    # Retry-until-ready at process start (see sqlroutes.pre_start)
    DB_STARTUP_MAX_TRIES: int = 60
    DB_STARTUP_WAIT_SECONDS: float = 1.0


settings = Settings()


class DBConfig(BaseSettings):
    """
    Connection parameters. Values come from the ``db`` section of the rule file;
    ``DB_DRIVER``, ``DB_FILEPATH``, ``DB_NAME``, ... override them.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_", extra="ignore", coerce_numbers_to_str=True
    )

    driver: DriverEnum = DriverEnum.SQLITE
    filepath: str = ""
    name: str = ""
    username: str = ""
    password: str = ""
    net: str = "tcp"
    host: str = "localhost"
    port: int | None = None

    @field_validator("driver", mode="before")
    @classmethod
    def _driver_alias(cls, v: Any) -> Any:
        if isinstance(v, str):
            key = v.strip().lower()
            return _DRIVER_ALIASES.get(key, key)
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment wins over the YAML file.
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @property
    def effective_port(self) -> int | None:
        return self.port or _DEFAULT_DB_PORTS.get(self.driver)

    def dsn(self, *, mask: bool = False) -> str:
        """Connection target for logs: filepath (sqlite3) or a URL-like string."""
        if self.driver == DriverEnum.SQLITE:
            return self.filepath
        password = "***" if mask and self.password else self.password
        if self.driver == DriverEnum.MYSQL:
            return (
                f"{self.username}:{password}@{self.net}"
                f"({self.host}:{self.effective_port})/{self.name}"
            )
        return (
            f"postgresql://{self.username}:{password}"
            f"@{self.host}:{self.effective_port}/{self.name}"
        )


def _single_or_many(single: str, many: list[str], singular: str, plural: str) -> list[str]:
    if single and many:
        raise ConfigError(f"both of `{singular}` and `{plural}` can't be defined in a rule")
    if single:
        return [single]
    return list(many)


def _normalize_method(method: str) -> MethodEnum:
    if not method:
        return MethodEnum.GET
    try:
        return MethodEnum(method)
    except ValueError as e:
        raise ConfigError(f"invalid method name: {method}") from e


class InputRule(BaseModel):
    """A rule as written in the YAML file (singular and plural keys allowed)."""

    model_config = ConfigDict(extra="ignore")

    path: str = ""
    before: str = ""
    befores: list[str] = []
    query: str = ""
    queries: list[str] = []
    after: str = ""
    afters: list[str] = []
    method: str = ""
    transaction: bool = False

    def to_rule(self) -> Rule:
        befores = _single_or_many(self.before, self.befores, "before", "befores")
        queries = _single_or_many(self.query, self.queries, "query", "queries")
        if not queries:
            raise ConfigError("at least one SQL query must be given per rule")
        afters = _single_or_many(self.after, self.afters, "after", "afters")
        method = _normalize_method(self.method)
        if not self.path.startswith("/"):
            raise ConfigError(f"rule path must start with `/`: {self.path!r}")
        return Rule(
            path=self.path,
            method=method,
            befores=tuple(befores),
            queries=tuple(queries),
            afters=tuple(afters),
            transaction=self.transaction,
        )


@dataclass(frozen=True)
class Config:
    db: DBConfig
    rules: tuple[Rule, ...]
    port: int = DEFAULT_PORT


class InputConfig(BaseModel):
    """Top level of the YAML rule file."""

    model_config = ConfigDict(extra="ignore")

    db: dict[str, Any] = {}
    rules: list[InputRule] = []
    port: int = 0

    def to_config(self) -> Config:
        rules = tuple(r.to_rule() for r in self.rules)
        try:
            db = DBConfig(**self.db)
        except ValidationError as e:
            raise ConfigError(f"invalid db section: {e}") from e
        return Config(db=db, rules=rules, port=self.port or DEFAULT_PORT)


def parse_config(raw: Any) -> Config:
    """Validate an already-decoded YAML document."""
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError("config file must contain a mapping at the top level")
    try:
        input_config = InputConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(str(e)) from e
    return input_config.to_config()


def load_config(path: str | Path) -> Config:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"failed to read config file: {e}") from e
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse config file: {e}") from e
    return parse_config(raw)
