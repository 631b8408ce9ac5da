from __future__ import annotations

from datetime import datetime
from typing import Any

from ivy.core.reminders import compute_reminders
from ivy.core.schemas import (
    CareInstruction,
    Diagnosis,
    GardenPlant,
    PlantCareGuide,
    Reminder,
    format_timestamp,
)

HEALTHY_MESSAGE = "No specific issues detected. Your plant looks healthy!"

# substring → category, first match wins
_TOPIC_CATEGORIES = (
    ("sun", "sun"),
    ("water", "water"),
    ("soil", "soil"),
    ("temp", "temperature"),
    ("humid", "humidity"),
    ("fertili", "fertilizer"),
)


class ResponseBuilder:
    def topic_category(self, topic: str) -> str:
        lower = topic.lower()
        for needle, category in _TOPIC_CATEGORIES:
            if needle in lower:
                return category
        return "other"

    def instruction(self, inst: CareInstruction) -> dict[str, Any]:
        return {**inst.to_dict(), "category": self.topic_category(inst.topic)}

    def guide(self, guide: PlantCareGuide) -> dict[str, Any]:
        return {
            "plantName": guide.plant_name,
            "summary": guide.summary,
            "instructions": [self.instruction(i) for i in guide.instructions],
        }

    def reminder(self, reminder: Reminder) -> dict[str, Any]:
        return reminder.to_dict()

    def plant(self, plant: GardenPlant, now: datetime | None = None) -> dict[str, Any]:
        body = plant.to_dict()
        body["careInstructions"] = [self.instruction(i) for i in plant.care_instructions]
        body["reminders"] = {
            action.value: self.reminder(r) for action, r in compute_reminders(plant, now=now).items()
        }
        body["lastWatered"] = format_timestamp(plant.watering_log[-1]) if plant.watering_log else None
        body["lastFertilized"] = format_timestamp(plant.fertilizing_log[-1]) if plant.fertilizing_log else None
        return body

    def plant_card(self, plant: GardenPlant) -> dict[str, Any]:
        return {"id": plant.id, "name": plant.name, "image": plant.image}

    def diagnoses(self, diagnoses: list[Diagnosis]) -> dict[str, Any]:
        # an empty list is a successful "healthy" result, never an error
        return {
            "healthy": not diagnoses,
            "message": HEALTHY_MESSAGE if not diagnoses else None,
            "diagnoses": [d.to_dict() for d in diagnoses],
        }
