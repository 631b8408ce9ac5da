from __future__ import annotations

from typing import Any

from fastapi import status


class IvyError(Exception):
    """
    Base for every domain error the API turns into a user-facing message.

    ``message`` is for logs; ``user_message`` is the short text shown to the user.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    user_message: str = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None, user_message: str | None = None):
        self.message = message or self.user_message
        if user_message is not None:
            self.user_message = user_message
        super().__init__(self.message)

    @property
    def error_code(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        return {"error": {"code": self.error_code, "message": self.user_message}}


# ----------------------------------------------------------------------
# AI capability
# ----------------------------------------------------------------------
class AICapabilityError(IvyError):
    status_code = status.HTTP_502_BAD_GATEWAY


class IdentificationError(AICapabilityError):
    user_message = "Could not identify the plant. Please try another image."


class GuideParseError(AICapabilityError):
    user_message = "Could not retrieve care instructions for this plant."


class DiagnosisError(AICapabilityError):
    user_message = "Could not diagnose the plant. Please try another photo."


class ChatError(AICapabilityError):
    user_message = "Sorry, I seem to be having trouble. Please try again in a moment."


# ----------------------------------------------------------------------
# Garden / sessions
# ----------------------------------------------------------------------
class PersistenceError(IvyError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    user_message = "Your change could not be saved. Please try again."


class PlantNotFoundError(IvyError, LookupError):
    status_code = status.HTTP_404_NOT_FOUND
    user_message = "That plant is not in your garden."

    def __init__(self, plant_id: int):
        self.plant_id = plant_id
        super().__init__(f"No garden plant with id {plant_id}")


class ChatSessionNotFoundError(IvyError, LookupError):
    status_code = status.HTTP_404_NOT_FOUND
    user_message = "That chat session has ended. Please start a new one."


class ChatBusyError(IvyError):
    status_code = status.HTTP_409_CONFLICT
    user_message = "Ivy is still answering your last message."
