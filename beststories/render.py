"""
Console renderers for a ranked story list.
"""
from __future__ import annotations

import json
from typing import List, Sequence

from beststories.models import Story


def _format_time(story: Story) -> str:
    return story.time.strftime("%Y-%m-%d %H:%M:%S UTC") if story.time else ""


def render_text(stories: Sequence[Story]) -> str:
    lines: List[str] = ["["]
    for story in stories:
        lines.extend(
            [
                "  {",
                f"    title: {story.title},",
                f"    url: {story.url},",
                f"    postedBy: {story.posted_by},",
                f"    time: {_format_time(story)},",
                f"    score: {story.score},",
                f"    commentCount: {story.comment_count},",
                "  }",
            ]
        )
    lines.append("]")
    return "\n".join(lines)


def render_json(stories: Sequence[Story]) -> str:
    return json.dumps([story.to_dict() for story in stories], ensure_ascii=False, indent=2)
