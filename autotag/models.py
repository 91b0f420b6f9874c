"""
Autotag — Pydantic models
Plugin options, page descriptors and cycle results.
"""

from __future__ import annotations

import re
from typing import Literal
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator, model_validator

from . import config

PatternMode = Literal["substring", "regex"]
CycleStatus = Literal["applied", "rejected", "duplicate", "failed"]


class AutotagOptions(BaseModel):
    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
        "json_schema_extra": {
            "examples": [
                {
                    "topicList": ["shoes", "hats"],
                    "blacklist": ["/checkout"],
                    "numTopics": 2,
                    "minViews": 3,
                    "maxViews": 20,
                    "tagPrefix": "topic:",
                },
                {
                    "urlPosition": 1,
                    "whitelist": ["/blog/"],
                },
            ]
        },
    }

    topic_list: list[str] = Field(default_factory=list, alias="topicList")
    whitelist: list[str] = Field(default_factory=list)
    blacklist: list[str] = Field(default_factory=list)
    pattern_mode: PatternMode = Field(
        "substring", alias="patternMode", description="substring=literal match, regex=regular expression"
    )
    url_position: int = Field(config.DEFAULT_URL_POSITION, ge=0, alias="urlPosition", description="0=hostname")
    num_topics: int = Field(config.DEFAULT_NUM_TOPICS, ge=1, alias="numTopics")
    min_views: int = Field(config.DEFAULT_MIN_VIEWS, ge=0, alias="minViews")
    max_views: int | None = Field(None, ge=1, alias="maxViews", description="None=unbounded")
    max_view_age: int | None = Field(None, gt=0, alias="maxViewAge", description="Milliseconds, None=unbounded")
    age_mid_weight: float = Field(config.DEFAULT_AGE_MID_WEIGHT, gt=0, alias="ageMidWeight")
    tag_prefix: str = Field(config.DEFAULT_TAG_PREFIX, min_length=1, alias="tagPrefix")

    @field_validator("whitelist", "blacklist")
    @classmethod
    def drop_blank_patterns(cls, v: list[str]) -> list[str]:
        return [p for p in v if p]

    @model_validator(mode="after")
    def patterns_must_compile(self) -> AutotagOptions:
        if self.pattern_mode == "regex":
            for pattern in [*self.whitelist, *self.blacklist]:
                try:
                    re.compile(pattern)
                except re.error as exc:
                    raise ValueError(f"Invalid pattern {pattern!r}: {exc}") from exc
        return self

    @property
    def effective_min_views(self) -> int:
        """minViews with the floor of 2 applied."""
        return max(config.MIN_VIEWS_FLOOR, self.min_views)


class PageLocator(BaseModel):
    href: str
    hostname: str = ""
    pathname: str = "/"

    @classmethod
    def from_url(cls, url: str) -> PageLocator:
        parts = urlsplit(url)
        return cls(href=url, hostname=parts.hostname or "", pathname=parts.path or "/")


class DomSnapshot(BaseModel):
    title: str | None = None
    first_heading_text: str | None = None
    meta_contents: dict[str, str] = Field(default_factory=dict, description="meta name -> content")


class TagDiff(BaseModel):
    to_add: list[str] = []
    to_remove: list[str] = []

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


class CycleResult(BaseModel):
    status: CycleStatus
    href: str
    topics: list[str] = []
    favorites: list[str] = []
    diff: TagDiff | None = None
    error: str | None = None


class TagListResponse(BaseModel):
    tags: list[str] = []
