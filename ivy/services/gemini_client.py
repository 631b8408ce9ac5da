from __future__ import annotations

import logging
from typing import Any

import requests

from ivy.core.schemas import ChatMessage, ImageInput, MessageAuthor


logger = logging.getLogger(__name__)


class GeminiError(RuntimeError):
    """Transport-level failure talking to the Gemini API."""


def text_part(text: str) -> dict[str, Any]:
    return {"text": text}


def image_part(image: ImageInput) -> dict[str, Any]:
    return {"inline_data": {"mime_type": image.mime_type, "data": image.to_base64()}}


def user_turn(*parts: dict[str, Any]) -> dict[str, Any]:
    return {"role": "user", "parts": list(parts)}


def history_turns(history: list[ChatMessage]) -> list[dict[str, Any]]:
    return [
        {
            "role": "user" if msg.author is MessageAuthor.USER else "model",
            "parts": [text_part(msg.text)],
        }
        for msg in history
    ]


class GeminiClient:
    """
    Thin ``generateContent`` client over the Gemini REST API.

    One request per call, no retries. Every request carries ``timeout_s``.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_s: float = 60.0,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.url = f"{base_url.rstrip('/')}/models/{model}:generateContent"
        self.timeout = timeout_s
        self.session = session or requests.Session()

    # ------------------------------------------------------------------
    # Internal HTTP helper
    # ------------------------------------------------------------------
    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        if not self.api_key:
            raise GeminiError("Gemini API key is not configured")

        try:
            response = self.session.post(
                self.url,
                json=payload,
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout as exc:
            raise GeminiError(f"Gemini request timed out after {self.timeout}s") from exc
        except requests.exceptions.HTTPError as exc:
            detail = ""
            if exc.response is not None:
                try:
                    detail = exc.response.json().get("error", {}).get("message", "")
                except ValueError:
                    detail = exc.response.text
            raise GeminiError(f"Gemini API error: {exc} {detail}".strip()) from exc
        except requests.exceptions.RequestException as exc:
            raise GeminiError(f"Gemini request failed: {exc}") from exc
        except ValueError as exc:
            raise GeminiError("Gemini returned a non-JSON body") from exc

    # ------------------------------------------------------------------
    # generateContent
    # ------------------------------------------------------------------
    def generate(
        self,
        contents: list[dict[str, Any]],
        system_instruction: str | None = None,
        response_schema: dict[str, Any] | None = None,
    ) -> str:
        """
        Returns the concatenated text parts of the first candidate.

        With ``response_schema`` the model is asked for JSON, so the returned
        text is a JSON document still to be validated by the caller.
        """
        payload: dict[str, Any] = {"contents": contents}
        if system_instruction:
            payload["systemInstruction"] = {"parts": [text_part(system_instruction)]}
        if response_schema is not None:
            payload["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            }

        data = self._post(payload)

        candidates = data.get("candidates") or []
        if not candidates:
            reason = data.get("promptFeedback", {}).get("blockReason", "no candidates")
            raise GeminiError(f"Gemini returned no candidates ({reason})")

        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
        if not text:
            finish = candidates[0].get("finishReason", "unknown")
            raise GeminiError(f"Gemini candidate has no text (finishReason={finish})")

        logger.debug("Gemini %s → %s chars", self.model, len(text))
        return text
