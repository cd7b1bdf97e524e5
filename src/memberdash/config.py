from __future__ import annotations

from pathlib import Path
from typing import Annotated
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MEMBERDASH_",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    enabled_groups: Annotated[list[str], NoDecode] = Field(default_factory=list)
    db_path: Path = Path("data/memberdash.sqlite3")
    timezone: str = "Asia/Shanghai"
    active_days: int = Field(default=7, gt=0)
    default_days: int = Field(default=7, gt=0)
    default_rank_limit: int = Field(default=10, gt=0)
    chart_dir: Path = Path("data/charts")
    font_path: str | None = None

    @field_validator("enabled_groups", mode="before")
    @classmethod
    def _parse_groups(cls, value: object) -> list[str]:
        if value is None:
            return []
        if isinstance(value, int):
            return [str(value)]
        if isinstance(value, str):
            chunks = [p.strip() for p in value.split(",") if p.strip()]
            return chunks
        if isinstance(value, list):
            return [str(v).strip() for v in value if str(v).strip()]
        raise ValueError("MEMBERDASH_ENABLED_GROUPS must be comma separated string or list")

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {value!r}") from exc
        return value

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)
