# bimqa/core/gemini_client.py
from __future__ import annotations
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict

import google.generativeai as genai
from google.api_core.exceptions import ResourceExhausted

from bimqa.core.errors import ReasoningError
from bimqa.core.redact import redact

logger = logging.getLogger(__name__)

FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.I)


def parse_json_text(s: str) -> Dict[str, Any]:
    """Parse a model reply that should be one JSON object (code fences tolerated)."""
    body = FENCE_RE.sub("", (s or "").strip()).strip()
    try:
        data = json.loads(body)
    except ValueError:
        # Some replies wrap the object in prose; take the outermost braces
        start, end = body.find("{"), body.rfind("}")
        if start < 0 or end <= start:
            raise ReasoningError(f"Reply is not JSON: {body[:200]!r}")
        try:
            data = json.loads(body[start:end + 1])
        except ValueError as ex:
            raise ReasoningError(f"Reply is not JSON: {ex}") from ex
    if not isinstance(data, dict):
        raise ReasoningError(f"Expected a JSON object, got {type(data).__name__}")
    return data


@dataclass
class GeminiClient:
    api_key: str
    # Primary model used for planning, quantity extraction and answers.
    model: str = "gemini-1.5-pro"
    # Fallback model used when rate limited or quota-exhausted.
    fallback_model: str = "gemini-1.5-flash"

    def __post_init__(self) -> None:
        genai.configure(api_key=self.api_key)
        self._primary = genai.GenerativeModel(self.model)
        self._fallback = (
            genai.GenerativeModel(self.fallback_model)
            if self.fallback_model and self.fallback_model != self.model
            else self._primary
        )

    def _try_generate(self, prompt: str, *, temperature: float, json_mode: bool = False):
        """Try primary model; on quota (429) fall back once to fallback model."""
        config: Dict[str, Any] = {"temperature": temperature}
        if json_mode:
            config["response_mime_type"] = "application/json"
        try:
            return self._primary.generate_content(prompt, generation_config=config)
        except ResourceExhausted:
            if self._fallback is self._primary:
                raise
            logger.warning("Gemini quota exhausted on %s; retrying with %s", self.model, self.fallback_model)
            return self._fallback.generate_content(prompt, generation_config=config)

    def _generate_text(self, prompt: str, *, temperature: float, json_mode: bool = False) -> str:
        try:
            resp = self._try_generate(prompt, temperature=temperature, json_mode=json_mode)
        except Exception as ex:
            raise ReasoningError(f"Gemini call failed: {redact(str(ex))}") from ex
        # Prefer .text, fall back to first candidate if needed
        try:
            return resp.text or ""
        except ValueError:
            try:
                return resp.candidates[0].content.parts[0].text  # type: ignore[attr-defined]
            except (AttributeError, IndexError):
                return ""

    def complete_json(self, prompt: str, *, temperature: float = 0.1) -> Dict[str, Any]:
        """
        Planning / extraction call. Keep temperature low to minimize hallucinations.
        Raises ReasoningError when the model fails or does not return a JSON object.
        """
        return parse_json_text(self._generate_text(prompt, temperature=temperature, json_mode=True))

    def complete_text(self, prompt: str, *, temperature: float = 0.2) -> str:
        text = self._generate_text(prompt, temperature=temperature)
        if not text.strip():
            raise ReasoningError("Gemini returned an empty answer")
        return text.strip()
