"""
Core data structures shared by the best-stories pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from beststories.errors import DecodeWarning


@dataclass(frozen=True)
class Story:
    """
    One resolved item from the upstream API. Built in a single decode pass.
    """

    id: int
    title: str = ""
    url: str = ""
    posted_by: str = ""
    time: Optional[datetime] = None
    score: int = 0
    comment_count: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "postedBy": self.posted_by,
            "time": self.time.isoformat() if self.time else None,
            "score": self.score,
            "commentCount": self.comment_count,
        }


@dataclass(frozen=True)
class CacheEntry:
    story: Story
    fetched_at: datetime

    def age(self, now: datetime) -> timedelta:
        return now - self.fetched_at

    def is_fresh(self, now: datetime, ttl: timedelta) -> bool:
        return self.age(now) <= ttl


@dataclass(frozen=True)
class ResolutionFailure:
    story_id: int
    error: str


@dataclass
class RankedResult:
    stories: List[Story]
    generated_at: datetime
    requested: int
    candidates: int = 0
    failures: List[ResolutionFailure] = field(default_factory=list)
    decode_warnings: List[DecodeWarning] = field(default_factory=list)
    latency_ms: Optional[float] = None
