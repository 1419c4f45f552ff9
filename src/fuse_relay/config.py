from datetime import timedelta
from functools import lru_cache
from typing import Any, Optional

from pydantic import Field, PositiveInt, TypeAdapter, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fuse_relay.errors import ConfigurationError

MIN_INTERVAL = timedelta(seconds=5)
MAX_INTERVAL = timedelta(minutes=30)

_interval_adapter = TypeAdapter(timedelta)


def _numeric_seconds(value: Any) -> Any:
    """Environment values arrive as text; a bare number means seconds."""
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return value
    return value


def check_interval(value: timedelta) -> timedelta:
    if value < MIN_INTERVAL or value > MAX_INTERVAL:
        raise ValueError(
            f"scheduler interval {value} is out of range: use intervals between "
            f"{MIN_INTERVAL} and {MAX_INTERVAL}"
        )
    return value


def parse_interval(value: Any) -> timedelta:
    """Parse and range-check a scheduler interval.

    Accepts a timedelta, a number of seconds, ``HH:MM:SS`` or an ISO-8601
    duration. Raises ConfigurationError on anything else.
    """
    try:
        interval = _interval_adapter.validate_python(_numeric_seconds(value))
    except ValidationError as e:
        raise ConfigurationError(f"unparseable scheduler interval {value!r}") from e
    try:
        return check_interval(interval)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


class Settings(BaseSettings):
    SCHEDULER_INTERVAL: timedelta
    OPC_API_URL: str = Field(min_length=1)
    HOST_NAME: str = Field(min_length=1)
    SERVER_NAME: str = Field(min_length=1)
    FUSE_API_URL: str = Field(min_length=1)
    PENDING_LIMIT: PositiveInt
    DATABASE_URL: str = Field(min_length=1)

    FLAG_FILE: str = "relay_state.json"
    HTTP_TIMEOUT: float = Field(default=10.0, gt=0)
    DB_CONNECT_TIMEOUT: float = Field(default=10.0, gt=0)
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None
    METRICS_PORT: Optional[int] = None

    OPC_NEW_RECORD_PATH: str = "/new-record"
    OPC_FETCH_PATH: str = "/pier-data"
    OPC_ACK_PATH: str = "/write-confirmation"
    OPC_BACKLOG_PATH: str = "/gpv-delay"
    FUSE_SUBMIT_PATH: str = "/data"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @field_validator("OPC_API_URL", "HOST_NAME", "SERVER_NAME", "FUSE_API_URL", "DATABASE_URL")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("SCHEDULER_INTERVAL", mode="before")
    @classmethod
    def _interval_seconds_text(cls, v: Any) -> Any:
        return _numeric_seconds(v)

    @field_validator("SCHEDULER_INTERVAL")
    @classmethod
    def _interval_in_range(cls, v: timedelta) -> timedelta:
        return check_interval(v)

    @property
    def interval_seconds(self) -> float:
        return self.SCHEDULER_INTERVAL.total_seconds()


def load_settings(**overrides: Any) -> Settings:
    """Build Settings, turning validation failures into ConfigurationError."""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'settings'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"invalid configuration: {problems}") from e


@lru_cache()
def get_settings() -> Settings:
    return load_settings()
