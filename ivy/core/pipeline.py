from __future__ import annotations

import logging
from dataclasses import dataclass

from ivy.core.schemas import ImageInput, PlantCareGuide
from ivy.services.ai_service import PlantAIService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentificationResult:
    plant_name: str
    guide: PlantCareGuide
    image: ImageInput


class IdentifyPipeline:
    """Image → plant name → care guide."""

    def __init__(self, ai: PlantAIService):
        self.ai = ai

    def run(self, image: ImageInput, legacy_text: bool = False) -> IdentificationResult:
        name = self.ai.identify_plant(image)
        logger.info("Identified plant: %s", name)

        if legacy_text:
            guide = self.ai.fetch_care_guide_text(name)
        else:
            guide = self.ai.fetch_care_guide(name)

        return IdentificationResult(plant_name=name, guide=guide, image=image)
