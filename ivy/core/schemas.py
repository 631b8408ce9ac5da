from __future__ import annotations

import base64
import binascii
import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class MessageAuthor(str, Enum):
    USER = "user"
    BOT = "bot"


class Confidence(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Severity(str, Enum):
    UNAVAILABLE = "unavailable"
    FIRST_TIME = "first-time"
    OVERDUE = "overdue"
    DUE_TODAY = "due-today"
    UPCOMING = "upcoming"


class CareAction(str, Enum):
    WATERING = "watering"
    FERTILIZING = "fertilizing"


# ----------------------------------------------------------------------
# Timestamps
# ----------------------------------------------------------------------
def parse_timestamp(value: str | datetime) -> datetime:
    """Accepts ISO-8601 strings, including the trailing ``Z`` form browsers emit."""
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return value.isoformat(timespec="milliseconds")


# ----------------------------------------------------------------------
# Care guide
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class FrequencyRange:
    min: int
    max: int

    def __post_init__(self) -> None:
        if self.min < 1 or self.max < 1:
            raise ValueError(f"frequency bounds must be positive: {self.min}-{self.max}")
        if self.min > self.max:
            raise ValueError(f"frequency min {self.min} exceeds max {self.max}")

    def to_dict(self) -> dict[str, int]:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class CareInstruction:
    topic: str
    details: str
    frequency_days: FrequencyRange | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "details": self.details,
            "frequencyDays": self.frequency_days.to_dict() if self.frequency_days else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CareInstruction:
        freq = data.get("frequencyDays")
        return cls(
            topic=str(data["topic"]),
            details=str(data.get("details", "")),
            frequency_days=FrequencyRange(min=int(freq["min"]), max=int(freq["max"])) if freq else None,
        )


@dataclass(frozen=True)
class PlantCareGuide:
    plant_name: str
    summary: str
    instructions: list[CareInstruction]

    def __post_init__(self) -> None:
        topics = [i.topic for i in self.instructions]
        if len(topics) != len(set(topics)):
            raise ValueError(f"duplicate care topics in guide for {self.plant_name!r}: {topics}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "plantName": self.plant_name,
            "summary": self.summary,
            "instructions": [i.to_dict() for i in self.instructions],
        }


# ----------------------------------------------------------------------
# Images
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class ImageInput:
    data: bytes
    mime_type: str = "image/jpeg"

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"

    @classmethod
    def from_data_url(cls, url: str) -> ImageInput:
        header, sep, payload = url.partition(",")
        if not sep or not header.startswith("data:") or not header.endswith(";base64"):
            raise ValueError("image must be a base64 data URL")
        mime_type = header[len("data:"):-len(";base64")] or "application/octet-stream"
        try:
            data = base64.b64decode(payload, validate=True)
        except binascii.Error as exc:
            raise ValueError("image data URL is not valid base64") from exc
        return cls(data=data, mime_type=mime_type)


# ----------------------------------------------------------------------
# Garden
# ----------------------------------------------------------------------
@dataclass
class GardenPlant:
    id: int
    name: str
    image: str  # data URL, self-contained
    summary: str
    care_instructions: list[CareInstruction]
    watering_log: list[datetime] = field(default_factory=list)
    fertilizing_log: list[datetime] = field(default_factory=list)
    notes: str = ""

    def log_for(self, action: CareAction) -> list[datetime]:
        return self.watering_log if action is CareAction.WATERING else self.fertilizing_log

    def copy(self) -> GardenPlant:
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "image": self.image,
            "summary": self.summary,
            "careInstructions": [i.to_dict() for i in self.care_instructions],
            "wateringLog": [format_timestamp(t) for t in self.watering_log],
            "fertilizingLog": [format_timestamp(t) for t in self.fertilizing_log],
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GardenPlant:
        return cls(
            id=int(data["id"]),
            name=str(data["name"]),
            image=str(data.get("image", "")),
            summary=str(data.get("summary", "")),
            care_instructions=[CareInstruction.from_dict(i) for i in data.get("careInstructions") or []],
            watering_log=[parse_timestamp(t) for t in data.get("wateringLog") or []],
            fertilizing_log=[parse_timestamp(t) for t in data.get("fertilizingLog") or []],
            notes=str(data.get("notes") or ""),
        )


@dataclass(frozen=True)
class Reminder:
    text: str
    severity: Severity
    days: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "severity": self.severity.value, "days": self.days}


# ----------------------------------------------------------------------
# Diagnosis
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class Treatment:
    organic: list[str]
    chemical: list[str]


@dataclass(frozen=True)
class Diagnosis:
    issue: str
    description: str
    confidence: Confidence
    treatment: Treatment

    def to_dict(self) -> dict[str, Any]:
        return {
            "issue": self.issue,
            "description": self.description,
            "confidence": self.confidence.value,
            "treatment": {
                "organic": list(self.treatment.organic),
                "chemical": list(self.treatment.chemical),
            },
        }


# ----------------------------------------------------------------------
# Chat
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class ChatMessage:
    author: MessageAuthor
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"author": self.author.value, "text": self.text}
