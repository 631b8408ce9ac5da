from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, TypeAdapter, field_validator, model_validator

from ivy.core.schemas import (
    CareInstruction,
    Confidence,
    Diagnosis,
    FrequencyRange,
    PlantCareGuide,
    Treatment,
)


class _Wire(BaseModel):
    model_config = ConfigDict(extra="ignore")


class FrequencyDaysModel(_Wire):
    min: PositiveInt
    max: PositiveInt

    @model_validator(mode="after")
    def check_order(self) -> "FrequencyDaysModel":
        if self.min > self.max:
            raise ValueError(f"min ({self.min}) must not exceed max ({self.max})")
        return self


class CareInstructionModel(_Wire):
    topic: str = Field(..., min_length=1, description="Care topic, e.g. Watering.")
    details: str = Field(..., description="Care guidance for the topic.")
    frequencyDays: Optional[FrequencyDaysModel] = Field(
        None, description="Inclusive range of days between sessions; recurring topics only."
    )

    def to_domain(self) -> CareInstruction:
        freq = self.frequencyDays
        return CareInstruction(
            topic=self.topic.strip(),
            details=self.details,
            frequency_days=FrequencyRange(min=freq.min, max=freq.max) if freq else None,
        )


class PlantCareGuideModel(_Wire):
    plantName: str = Field(..., min_length=1, description="Common name of the plant.")
    summary: str = Field(..., description="One-sentence summary.")
    instructions: list[CareInstructionModel]

    @field_validator("instructions")
    @classmethod
    def unique_topics(cls, value: list[CareInstructionModel]) -> list[CareInstructionModel]:
        seen: set[str] = set()
        for inst in value:
            topic = inst.topic.strip()
            if topic in seen:
                raise ValueError(f"duplicate topic {topic!r}")
            seen.add(topic)
        return value

    def to_domain(self) -> PlantCareGuide:
        return PlantCareGuide(
            plant_name=self.plantName.strip(),
            summary=self.summary.strip(),
            instructions=[i.to_domain() for i in self.instructions],
        )


class TreatmentModel(_Wire):
    organic: list[str]
    chemical: list[str]


class DiagnosisModel(_Wire):
    issue: str = Field(..., min_length=1)
    description: str
    confidence: Literal["High", "Medium", "Low"]
    treatment: TreatmentModel

    def to_domain(self) -> Diagnosis:
        return Diagnosis(
            issue=self.issue,
            description=self.description,
            confidence=Confidence(self.confidence),
            treatment=Treatment(organic=list(self.treatment.organic), chemical=list(self.treatment.chemical)),
        )


_diagnosis_list = TypeAdapter(list[DiagnosisModel])


def parse_guide_json(raw: str) -> PlantCareGuide:
    """Raises ``pydantic.ValidationError`` on malformed JSON or a shape mismatch."""
    return PlantCareGuideModel.model_validate_json(raw).to_domain()


def parse_diagnoses_json(raw: str) -> list[Diagnosis]:
    return [d.to_domain() for d in _diagnosis_list.validate_json(raw)]


# ----------------------------------------------------------------------
# Gemini response schemas (OpenAPI subset accepted by responseSchema)
# ----------------------------------------------------------------------
_INSTRUCTION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "topic": {"type": "STRING"},
        "details": {"type": "STRING"},
        "frequencyDays": {
            "type": "OBJECT",
            "nullable": True,
            "properties": {
                "min": {"type": "INTEGER"},
                "max": {"type": "INTEGER"},
            },
            "required": ["min", "max"],
        },
    },
    "required": ["topic", "details"],
}

GUIDE_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "plantName": {"type": "STRING"},
        "summary": {"type": "STRING"},
        "instructions": {"type": "ARRAY", "items": _INSTRUCTION_SCHEMA},
    },
    "required": ["plantName", "summary", "instructions"],
}

DIAGNOSIS_RESPONSE_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "issue": {"type": "STRING"},
            "description": {"type": "STRING"},
            "confidence": {"type": "STRING", "enum": ["High", "Medium", "Low"]},
            "treatment": {
                "type": "OBJECT",
                "properties": {
                    "organic": {"type": "ARRAY", "items": {"type": "STRING"}},
                    "chemical": {"type": "ARRAY", "items": {"type": "STRING"}},
                },
                "required": ["organic", "chemical"],
            },
        },
        "required": ["issue", "description", "confidence", "treatment"],
    },
}
