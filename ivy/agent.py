from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from ivy.config import Settings
from ivy.core.pipeline import IdentifyPipeline
from ivy.core.policies import Policies
from ivy.core.reminders import compute_reminders
from ivy.core.response import ResponseBuilder
from ivy.core.schemas import CareAction, ImageInput, PlantCareGuide
from ivy.services.ai_service import PlantAIService
from ivy.services.chat_service import ChatSession, ChatSessionRegistry
from ivy.services.garden_service import GardenStore
from ivy.services.gemini_client import GeminiClient
from ivy.services.kv_store import JsonFileStore

logger = logging.getLogger(__name__)


class IvyAgent:
    """Wires the four views (identify, diagnose, garden, chat) over explicit collaborators."""

    def __init__(
        self,
        ai: PlantAIService,
        garden: GardenStore,
        policies: Policies | None = None,
        response_builder: ResponseBuilder | None = None,
    ):
        self.policies = policies or ai.policies
        self.ai = ai
        self.garden = garden
        self.pipeline = IdentifyPipeline(ai=ai)
        self.chats = ChatSessionRegistry(ai=ai, policy=self.policies.chat)
        self.response_builder = response_builder or ResponseBuilder()

    @classmethod
    def from_settings(cls, settings: Settings) -> IvyAgent:
        if not settings.gemini_api_key:
            logger.warning("GEMINI_API_KEY is not set; AI requests will fail")

        policies = Policies()
        client = GeminiClient(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout_s=settings.ai_timeout_s,
        )
        garden = GardenStore(JsonFileStore(settings.data_dir), key=settings.garden_store_key)

        logger.info("✅ IvyAgent initialized (model=%s, data_dir=%s)", settings.gemini_model, settings.data_dir)
        return cls(ai=PlantAIService(client=client, policies=policies), garden=garden, policies=policies)

    # ------------------------------------------------------------------
    # Identify / diagnose
    # ------------------------------------------------------------------
    def identify(self, image: ImageInput, legacy_text: bool = False) -> dict[str, Any]:
        result = self.pipeline.run(image, legacy_text=legacy_text)
        return {
            **self.response_builder.guide(result.guide),
            "identifiedAs": result.plant_name,
            "image": result.image.to_data_url(),
        }

    def diagnose(self, image: ImageInput) -> dict[str, Any]:
        return self.response_builder.diagnoses(self.ai.diagnose(image))

    # ------------------------------------------------------------------
    # Garden
    # ------------------------------------------------------------------
    def list_garden(self) -> list[dict[str, Any]]:
        return [self.response_builder.plant_card(p) for p in self.garden.list()]

    def get_plant(self, plant_id: int, now: datetime | None = None) -> dict[str, Any]:
        return self.response_builder.plant(self.garden.get(plant_id), now=now)

    def adopt(self, guide: PlantCareGuide, image: ImageInput | str) -> dict[str, Any]:
        plant = self.garden.adopt(guide, image)
        return self.response_builder.plant(plant)

    def log_care(self, plant_id: int, action: CareAction, when: datetime | None = None) -> dict[str, Any]:
        plant = self.garden.log_care_event(plant_id, action, when=when)
        return self.response_builder.plant(plant)

    def update_notes(self, plant_id: int, notes: str) -> dict[str, Any]:
        plant = self.garden.update_notes(plant_id, notes)
        return self.response_builder.plant(plant)

    def remove_plant(self, plant_id: int) -> None:
        self.garden.remove(plant_id)
        logger.info("Removed plant %s from the garden", plant_id)

    def reminders(self, plant_id: int, now: datetime | None = None) -> dict[str, Any]:
        plant = self.garden.get(plant_id)
        return {
            action.value: self.response_builder.reminder(r)
            for action, r in compute_reminders(plant, now=now).items()
        }

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------
    def start_chat(self) -> dict[str, Any]:
        session = self.chats.create()
        return self._chat_body(session)

    def chat_transcript(self, session_id: str) -> dict[str, Any]:
        return self._chat_body(self.chats.get(session_id))

    def send_chat(self, session_id: str, text: str) -> dict[str, Any]:
        session = self.chats.get(session_id)
        turn = session.send(text)
        return {
            **self._chat_body(session),
            "reply": turn.reply.to_dict(),
            "failed": turn.failed,
        }

    def end_chat(self, session_id: str) -> None:
        self.chats.dispose(session_id)

    def _chat_body(self, session: ChatSession) -> dict[str, Any]:
        return {"sessionId": session.id, "transcript": [m.to_dict() for m in session.transcript]}
