"""Captcha solver implementations.

This module contains the ICaptchaSolver implementation backed by Google
Gemini. The image is sent inline with a fixed instruction through the
``generateContent`` REST endpoint, sampling is disabled, and the answer is
reduced to the alphanumeric code the BTK form expects.
"""

import base64
import json
import re
from typing import Any, Dict

from btk_lookup.config.logger import logger
from btk_lookup.config.settings import LookupConfig
from btk_lookup.errors import (
    RecognitionApiError,
    RecognitionAuthError,
    RecognitionEmptyError,
    RecognitionFormatError,
    RecognitionQuotaError,
    RecognitionSafetyError,
)
from btk_lookup.http.transport import HttpTransport
from .interfaces import ICaptchaSolver

MIN_CODE_LENGTH = 5
MAX_CODE_LENGTH = 6

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


def normalize_code(text: str) -> str:
    """Reduce recognizer output to a captcha code.

    Every character outside ``[A-Za-z0-9]`` is dropped; case is kept.

    Raises:
        RecognitionFormatError: If the cleaned code is not 5-6 characters.
    """
    cleaned = _NON_ALNUM.sub("", text)
    if not MIN_CODE_LENGTH <= len(cleaned) <= MAX_CODE_LENGTH:
        raise RecognitionFormatError(text, cleaned)
    return cleaned


class GeminiCaptchaSolver(ICaptchaSolver):
    """Captcha solver using the Google Gemini vision API.

    One request per image: the prompt and the base64 image travel as two
    parts of a single user turn, with temperature 0 and a small output cap.
    """

    def __init__(self, transport: HttpTransport, config: LookupConfig):
        """Initialize the Gemini solver.

        Args:
            transport: Shared HTTP transport.
            config: Application configuration (model, prompt, output cap).
        """
        self.transport = transport
        self.config = config
        self.logger = logger.bind(solver="Gemini", model=config.gemini_model)

    @property
    def endpoint(self) -> str:
        return f"{self.config.gemini_api_base}/models/{self.config.gemini_model}:generateContent"

    def build_request(self, image: bytes) -> Dict[str, Any]:
        """Build the generateContent request body for ``image``."""
        return {
            "contents": [
                {
                    "parts": [
                        {"text": self.config.captcha_prompt},
                        {
                            "inline_data": {
                                "mime_type": "image/png",
                                "data": base64.b64encode(image).decode("ascii"),
                            }
                        },
                    ]
                }
            ],
            "generationConfig": {
                "temperature": 0,
                "maxOutputTokens": self.config.max_output_tokens,
            },
        }

    async def solve(self, image: bytes, api_key: str) -> str:
        """Solve the captcha using the Gemini API.

        Args:
            image: Raw captcha image bytes.
            api_key: Gemini API key.

        Returns:
            The captcha code, case preserved.

        Raises:
            RecognitionAuthError: HTTP 401 or 403.
            RecognitionQuotaError: HTTP 429.
            RecognitionApiError: Other non-200 status or unreadable JSON.
            RecognitionSafetyError: The prompt or answer was safety-blocked.
            RecognitionEmptyError: No text, or generation did not finish.
            RecognitionFormatError: The text is not a 5-6 character code.
        """
        self.logger.info("solving_captcha", size=len(image))

        response = await self.transport.request(
            "POST",
            self.endpoint,
            json=self.build_request(image),
            headers={"x-goog-api-key": api_key, "Content-Type": "application/json"},
        )

        if response.status in (401, 403):
            raise RecognitionAuthError(f"Gemini API authorization failed: HTTP {response.status}")
        if response.status == 429:
            raise RecognitionQuotaError("Gemini API quota exceeded")
        if response.status != 200:
            raise RecognitionApiError(
                f"Gemini API error: {self._error_message(response.body) or f'HTTP {response.status}'}",
                response.status,
            )

        try:
            payload = json.loads(response.body)
        except ValueError as e:
            raise RecognitionApiError(f"Gemini API returned invalid JSON: {e}", response.status) from e

        text = self._extract_text(payload)
        code = normalize_code(text)

        self.logger.info("captcha_solved", code=code)
        return code

    @staticmethod
    def _error_message(body: bytes) -> str:
        try:
            return json.loads(body).get("error", {}).get("message", "")
        except (ValueError, AttributeError):
            return ""

    @staticmethod
    def _extract_text(payload: Dict[str, Any]) -> str:
        """Pull the answer text out of a generateContent response."""
        block_reason = (payload.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise RecognitionSafetyError(block_reason)

        candidates = payload.get("candidates") or []
        if not candidates:
            raise RecognitionEmptyError("Gemini API returned no candidates")

        candidate = candidates[0]
        finish_reason = candidate.get("finishReason")
        if finish_reason == "SAFETY":
            raise RecognitionSafetyError(finish_reason)
        if finish_reason and finish_reason != "STOP":
            raise RecognitionEmptyError(f"Gemini response did not complete: {finish_reason}")

        # Thinking models may prepend thought parts; only answer text counts
        parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(
            part.get("text", "") for part in parts if not part.get("thought")
        )
        if not text.strip():
            raise RecognitionEmptyError("Gemini API returned no text")
        return text
