from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class GuidePolicy:
    canonical_topics: tuple[str, ...] = (
        "Sunlight",
        "Watering",
        "Soil",
        "Temperature",
        "Humidity",
        "Fertilizing",
    )
    # topics that get a frequencyDays range
    recurring_topics: tuple[str, ...] = ("Watering", "Fertilizing")


@dataclass(frozen=True)
class ChatPolicy:
    persona: str = (
        "You are a friendly and knowledgeable gardening assistant named Ivy. "
        "Answer questions about gardening, plants, and related topics concisely and helpfully."
    )
    greeting: str = "Hello! I'm Ivy, your AI gardening assistant. Ask me anything about plants!"
    apology: str = "Sorry, I seem to be having trouble. Please try again in a moment."
    max_sessions: int = 100
    # idle sessions older than this are dropped
    idle_timeout_s: float = 3600.0


@dataclass(frozen=True)
class Prompts:
    identify: str = (
        "Identify the plant in this image. "
        "Respond with only the common name of the plant, and nothing else."
    )
    guide: str = (
        "Provide a care guide for a {plant_name}. Give a brief, one-sentence summary and one "
        "instruction for each of these topics, in this order: {topics}. For {recurring}, also give "
        "frequencyDays as the inclusive range of days between sessions; leave it null for the others."
    )
    guide_text: str = (
        "Provide detailed care instructions for a {plant_name}. For each category, use a heading "
        "like '### Topic:'. Include the following categories: {topics}. Provide a brief, "
        "one-sentence summary at the very top."
    )
    diagnose: str = (
        "Analyze this image of a plant for diseases, pests, or nutrient deficiencies. For each "
        "issue you find, give its name, a short description, your confidence (High, Medium or Low), "
        "and ordered organic and chemical treatment steps. Return an empty list if the plant "
        "looks healthy."
    )


@dataclass(frozen=True)
class Policies:
    guide: GuidePolicy = field(default_factory=GuidePolicy)
    chat: ChatPolicy = field(default_factory=ChatPolicy)
    prompts: Prompts = field(default_factory=Prompts)
