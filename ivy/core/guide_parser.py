from __future__ import annotations

import re
from dataclasses import dataclass

from ivy.core.schemas import CareInstruction

NO_SUMMARY = "No summary available."

_HEADING = re.compile(r"^###\s*(.+?):")


@dataclass(frozen=True)
class ParsedGuide:
    summary: str
    instructions: list[CareInstruction]


def parse_care_instructions(text: str) -> ParsedGuide:
    """
    Parse a free-text care guide that marks each topic with a ``### Topic:`` heading.

    The first line is the summary. Detail lines are trimmed and appended to the
    most recent topic, each followed by a single space. Anything between the
    summary and the first heading is dropped.
    """
    lines = text.split("\n")
    summary = lines[0] or NO_SUMMARY

    topics: list[str] = []
    details: list[str] = []

    for line in lines[1:]:
        match = _HEADING.match(line)
        if match:
            topics.append(match.group(1).strip())
            details.append("")
        elif topics and line.strip():
            details[-1] += f"{line.strip()} "

    instructions = [CareInstruction(topic=t, details=d) for t, d in zip(topics, details)]
    return ParsedGuide(summary=summary, instructions=instructions)
