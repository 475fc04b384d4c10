"""Application configuration."""

from __future__ import annotations

from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChartSettings(BaseModel):
    api_key: str | None = None
    base_url: str = "https://kobis.or.kr/kobisopenapi/webservice/rest"
    window_days: int = Field(21, ge=1, le=60)
    daily_top: int = Field(10, ge=1, le=100)
    candidate_limit: int = Field(50, ge=1, le=500)
    timeout_seconds: float = Field(10.0, ge=1.0, le=60.0)


class MetadataSettings(BaseModel):
    api_key: str | None = None
    base_url: str = "https://api.themoviedb.org/3"
    language: str = "ko-KR"
    region: str = "KR"
    include_adult: bool = False
    timeout_seconds: float = Field(10.0, ge=1.0, le=60.0)


class MatcherSettings(BaseModel):
    concurrency: int = Field(2, ge=1, le=16)
    accept_threshold: float = 60.0
    cache_ttl_seconds: float = Field(600.0, gt=0)
    cache_negative_ttl_seconds: float = Field(120.0, gt=0)
    cache_max_entries: int = Field(2000, ge=1)


class TopicSettings(BaseModel):
    concurrency: int = Field(4, ge=1, le=16)
    alias_confidence: float = Field(0.7, ge=0.0, le=1.0)


class ExternalSettings(BaseModel):
    keyword_limit: int = Field(20, ge=0, le=200)
    concurrency: int = Field(3, ge=1, le=16)


class MentionSettings(BaseModel):
    client_id: str | None = None
    client_secret: str | None = None
    base_url: str = "https://openapi.naver.com/v1/search"
    categories: list[str] = Field(default_factory=lambda: ["blog", "cafearticle", "news"])
    timeout_seconds: float = Field(10.0, ge=1.0, le=60.0)

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, value: list[str]) -> list[str]:
        cleaned = [item.strip() for item in value if item.strip()]
        if not cleaned:
            raise ValueError("categories must not be empty")
        return cleaned


class InterestSettings(BaseModel):
    client_id: str | None = None
    client_secret: str | None = None
    url: str = "https://openapi.naver.com/v1/datalab/search"
    batch_size: int = Field(5, ge=1, le=5)
    window_days: int = Field(7, ge=1, le=90)
    timeout_seconds: float = Field(12.0, ge=1.0, le=60.0)


class VideoSettings(BaseModel):
    api_key: str | None = None
    url: str = "https://www.googleapis.com/youtube/v3/search"
    query_template: str = "{keyword} 예고편"
    region_code: str = "KR"
    max_results: int = Field(10, ge=1, le=50)
    timeout_seconds: float = Field(12.0, ge=1.0, le=60.0)

    @field_validator("query_template")
    @classmethod
    def validate_query_template(cls, value: str) -> str:
        if "{keyword}" not in value:
            raise ValueError("query_template must contain {keyword}")
        return value


class TrendScoringSettings(BaseModel):
    algo_version: str = "kr.daily.v1"
    coverage_threshold: float = Field(0.6, ge=0.0, le=1.0)
    primary_weight_high_coverage: float = 0.12
    primary_weight_low_coverage: float = 0.18
    interest_base: float = 0.30
    mentions_base: float = 0.30
    video_base: float = 0.25
    primary_z_clamp: float = Field(0.7, gt=0.0)

    @field_validator("primary_weight_high_coverage", "primary_weight_low_coverage")
    @classmethod
    def validate_primary_weight(cls, value: float) -> float:
        if value < 0.0 or value >= 1.0:
            raise ValueError("primary weight must be within [0, 1)")
        return value

    @field_validator("interest_base", "mentions_base", "video_base")
    @classmethod
    def validate_external_base(cls, value: float) -> float:
        if value <= 0.0:
            raise ValueError("external base ratios must be positive")
        return value


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        env_prefix="",
        env_nested_delimiter="__",
        extra="ignore",
    )

    database_url: str = Field(..., validation_alias="DATABASE_URL")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    sentry_dsn: str | None = Field(default=None, validation_alias="SENTRY_DSN")
    region: str = Field("KR", validation_alias="TRENDS_REGION")
    timezone: str = Field("Asia/Seoul", validation_alias="TRENDS_TIMEZONE")

    chart: ChartSettings = ChartSettings()
    metadata: MetadataSettings = MetadataSettings()
    matcher: MatcherSettings = MatcherSettings()
    topics: TopicSettings = TopicSettings()
    external: ExternalSettings = ExternalSettings()
    mentions: MentionSettings = MentionSettings()
    interest: InterestSettings = InterestSettings()
    video: VideoSettings = VideoSettings()
    scoring: TrendScoringSettings = TrendScoringSettings()

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except ZoneInfoNotFoundError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    def public_dict(self) -> dict[str, Any]:
        data = self.model_dump()
        data["database_url"] = "***"
        for section, keys in (
            ("chart", ("api_key",)),
            ("metadata", ("api_key",)),
            ("mentions", ("client_id", "client_secret")),
            ("interest", ("client_id", "client_secret")),
            ("video", ("api_key",)),
        ):
            payload = data.get(section)
            if not isinstance(payload, dict):
                continue
            for key in keys:
                if payload.get(key):
                    payload[key] = "***"
        return data
