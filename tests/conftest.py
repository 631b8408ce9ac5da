"""
Shared fixtures for the Ivy test suite.

Provides:
- A mocked Gemini transport (no network)
- The AI adapter, garden store and agent wired over in-memory collaborators
- Sample guide payloads in the wire (camelCase) shape
"""

from __future__ import annotations

import json
import logging
from unittest.mock import Mock

import pytest

from ivy.agent import IvyAgent
from ivy.core.policies import Policies
from ivy.core.schemas import CareInstruction, FrequencyRange, ImageInput, PlantCareGuide
from ivy.services.ai_service import PlantAIService
from ivy.services.garden_service import GardenStore
from ivy.services.gemini_client import GeminiClient
from ivy.services.kv_store import InMemoryStore

logging.getLogger("ivy").setLevel(logging.WARNING)


GUIDE_PAYLOAD = {
    "plantName": "Monstera Deliciosa",
    "summary": "A forgiving tropical climber with split leaves.",
    "instructions": [
        {"topic": "Sunlight", "details": "Bright, indirect light.", "frequencyDays": None},
        {"topic": "Watering", "details": "Water when the top inch is dry.", "frequencyDays": {"min": 5, "max": 7}},
        {"topic": "Soil", "details": "Chunky, well-draining aroid mix."},
        {"topic": "Temperature", "details": "18-29°C."},
        {"topic": "Humidity", "details": "60% or higher."},
        {"topic": "Fertilizing", "details": "Monthly in spring and summer.", "frequencyDays": {"min": 28, "max": 30}},
    ],
}


@pytest.fixture
def guide_json() -> str:
    return json.dumps(GUIDE_PAYLOAD)


@pytest.fixture
def guide() -> PlantCareGuide:
    return PlantCareGuide(
        plant_name="Monstera Deliciosa",
        summary="A forgiving tropical climber with split leaves.",
        instructions=[
            CareInstruction(topic="Sunlight", details="Bright, indirect light."),
            CareInstruction(
                topic="Watering",
                details="Water when the top inch is dry.",
                frequency_days=FrequencyRange(min=5, max=7),
            ),
            CareInstruction(
                topic="Fertilizing",
                details="Monthly in spring and summer.",
                frequency_days=FrequencyRange(min=28, max=30),
            ),
        ],
    )


@pytest.fixture
def image() -> ImageInput:
    return ImageInput(data=b"\x89PNG fake image bytes", mime_type="image/png")


@pytest.fixture
def gemini_client():
    """Mocked transport; set ``generate.return_value`` / ``side_effect`` per test."""
    return Mock(spec=GeminiClient)


@pytest.fixture
def policies() -> Policies:
    return Policies()


@pytest.fixture
def ai_service(gemini_client, policies) -> PlantAIService:
    return PlantAIService(client=gemini_client, policies=policies)


@pytest.fixture
def kv_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def garden(kv_store) -> GardenStore:
    return GardenStore(kv_store)


@pytest.fixture
def agent(ai_service, garden, policies) -> IvyAgent:
    return IvyAgent(ai=ai_service, garden=garden, policies=policies)
