"""
Decoders for the two upstream payload shapes: the best-ids list and a single item.

Both are tolerant: a malformed id token is skipped and a malformed item field
falls back to its zero value. Each problem is logged and, when the caller passes
a list, recorded there as a DecodeWarning.
"""
from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from beststories.errors import DecodeWarning
from beststories.models import Story

logger = logging.getLogger(__name__)

ID_TOKEN = re.compile(r"[+-]?[0-9]+", re.ASCII)


def _warn(
    warnings: Optional[List[DecodeWarning]],
    message: str,
    story_id: Optional[int] = None,
    field: Optional[str] = None,
) -> None:
    logger.warning("Decode warning (id=%s field=%s): %s", story_id, field, message)
    if warnings is not None:
        warnings.append(DecodeWarning(message, story_id=story_id, field=field))


class ItemPayload(BaseModel):
    """Top-level fields of an item document. Nested values are never inspected."""

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    by: str = ""
    url: str = ""
    score: int = 0
    descendants: int = 0
    time: Optional[datetime] = None

    @field_validator("title", "by", "url", mode="before")
    @classmethod
    def _text_or_empty(cls, value: Any, info: ValidationInfo) -> str:
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        _report(info, f"expected text, got {type(value).__name__}")
        return ""

    @field_validator("score", "descendants", mode="before")
    @classmethod
    def _int_or_zero(cls, value: Any, info: ValidationInfo) -> int:
        if value is None:
            return 0
        # bool is an int subclass but never a valid count
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        _report(info, f"expected integer, got {value!r}")
        return 0

    @field_validator("time", mode="before")
    @classmethod
    def _epoch_to_utc(cls, value: Any, info: ValidationInfo) -> Optional[datetime]:
        if value is None:
            return None
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return datetime.fromtimestamp(value, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                _report(info, f"epoch seconds out of range: {value!r}")
                return None
        _report(info, f"expected epoch seconds, got {value!r}")
        return None


def _report(info: ValidationInfo, message: str) -> None:
    context = info.context or {}
    _warn(context.get("warnings"), message, story_id=context.get("story_id"), field=info.field_name)


def _first_value_wins(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    # a repeated key keeps its first value
    result: Dict[str, Any] = {}
    for key, value in pairs:
        result.setdefault(key, value)
    return result


def decode_best_ids(payload: str, warnings: Optional[List[DecodeWarning]] = None) -> List[int]:
    """
    Parse a bracketed, comma-separated id list such as ``[1,2,3]``.

    Tokens that are not plain ASCII integers (an optional sign and digits) are
    skipped; the remaining ids keep their order.
    """
    body = (payload or "").strip().strip("[]").strip()
    if not body:
        return []

    ids: List[int] = []
    for token in body.split(","):
        token = token.strip()
        if ID_TOKEN.fullmatch(token):
            ids.append(int(token))
        else:
            _warn(warnings, f"skipping malformed id token {token!r}")
    return ids


def decode_story(story_id: int, payload: str, warnings: Optional[List[DecodeWarning]] = None) -> Story:
    """
    Build a Story from a single item document.

    Absent fields are normal and silently take their zero value. A document that
    is not a JSON object (``null`` for a deleted item, or garbage) yields a Story
    carrying only the id.
    """
    try:
        data = json.loads(payload, object_pairs_hook=_first_value_wins)
    except (TypeError, ValueError) as exc:
        _warn(warnings, f"item payload is not valid JSON: {exc}", story_id=story_id)
        return Story(id=story_id)

    if not isinstance(data, dict):
        _warn(warnings, f"item payload is {type(data).__name__}, expected an object", story_id=story_id)
        return Story(id=story_id)

    item = ItemPayload.model_validate(data, context={"warnings": warnings, "story_id": story_id})
    return Story(
        id=story_id,
        title=item.title,
        url=item.url,
        posted_by=item.by,
        time=item.time,
        score=item.score,
        comment_count=item.descendants,
    )
