from __future__ import annotations

import logging

from pydantic import ValidationError

from ivy.core.exceptions import ChatError, DiagnosisError, GuideParseError, IdentificationError
from ivy.core.guide_parser import parse_care_instructions
from ivy.core.policies import Policies
from ivy.core.schemas import ChatMessage, Diagnosis, ImageInput, PlantCareGuide
from ivy.core.validation import (
    DIAGNOSIS_RESPONSE_SCHEMA,
    GUIDE_RESPONSE_SCHEMA,
    parse_diagnoses_json,
    parse_guide_json,
)
from ivy.services.gemini_client import (
    GeminiClient,
    GeminiError,
    history_turns,
    image_part,
    text_part,
    user_turn,
)

logger = logging.getLogger(__name__)


class PlantAIService:
    """
    The four AI capabilities: identify, care guide, diagnose, converse.

    Every capability fails closed with its own domain error; nothing is
    returned on a transport or validation failure.
    """

    def __init__(self, client: GeminiClient, policies: Policies):
        self.client = client
        self.policies = policies

    def identify_plant(self, image: ImageInput) -> str:
        try:
            text = self.client.generate([user_turn(image_part(image), text_part(self.policies.prompts.identify))])
        except GeminiError as e:
            raise IdentificationError(f"Plant identification failed: {e}") from e

        name = text.strip()
        if not name:
            raise IdentificationError("Plant identification returned an empty name")
        return name

    def fetch_care_guide(self, plant_name: str) -> PlantCareGuide:
        guide_policy = self.policies.guide
        prompt = self.policies.prompts.guide.format(
            plant_name=plant_name,
            topics=", ".join(guide_policy.canonical_topics),
            recurring=" and ".join(guide_policy.recurring_topics),
        )
        try:
            raw = self.client.generate([user_turn(text_part(prompt))], response_schema=GUIDE_RESPONSE_SCHEMA)
            guide = parse_guide_json(raw)
        except GeminiError as e:
            raise GuideParseError(f"Care guide request for {plant_name!r} failed: {e}") from e
        except (ValidationError, ValueError) as e:
            raise GuideParseError(f"Care guide for {plant_name!r} did not validate: {e}") from e

        missing = set(guide_policy.canonical_topics) - {i.topic for i in guide.instructions}
        if missing:
            logger.warning("Care guide for %s is missing topics: %s", plant_name, sorted(missing))
        return guide

    def fetch_care_guide_text(self, plant_name: str) -> PlantCareGuide:
        """Older free-text variant, parsed from ``### Topic:`` headings."""
        prompt = self.policies.prompts.guide_text.format(
            plant_name=plant_name,
            topics=", ".join(self.policies.guide.canonical_topics),
        )
        try:
            text = self.client.generate([user_turn(text_part(prompt))])
        except GeminiError as e:
            raise GuideParseError(f"Care guide request for {plant_name!r} failed: {e}") from e

        parsed = parse_care_instructions(text)
        if not parsed.instructions:
            raise GuideParseError(f"Care guide for {plant_name!r} has no topic headings")
        try:
            return PlantCareGuide(plant_name=plant_name, summary=parsed.summary, instructions=parsed.instructions)
        except ValueError as e:
            raise GuideParseError(f"Care guide for {plant_name!r} is malformed: {e}") from e

    def diagnose(self, image: ImageInput) -> list[Diagnosis]:
        """An empty list means no issues were found."""
        try:
            raw = self.client.generate(
                [user_turn(image_part(image), text_part(self.policies.prompts.diagnose))],
                response_schema=DIAGNOSIS_RESPONSE_SCHEMA,
            )
            return parse_diagnoses_json(raw)
        except GeminiError as e:
            raise DiagnosisError(f"Diagnosis request failed: {e}") from e
        except ValidationError as e:
            raise DiagnosisError(f"Diagnosis response did not validate: {e}") from e

    def converse(self, history: list[ChatMessage], message: str) -> str:
        contents = history_turns(history) + [user_turn(text_part(message))]
        try:
            reply = self.client.generate(contents, system_instruction=self.policies.chat.persona)
        except GeminiError as e:
            raise ChatError(f"Chat request failed: {e}") from e

        reply = reply.strip()
        if not reply:
            raise ChatError("Chat reply was empty")
        return reply
