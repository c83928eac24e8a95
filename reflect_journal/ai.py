from __future__ import annotations

import json
import logging
from typing import Any

import google.generativeai as genai

from .config import DEFAULT_MODEL
from .models import MAX_THEMES_PER_INSIGHT, InsightResult

_logger = logging.getLogger(__name__)

FALLBACK_THEMES = ("Reflection", "Mindfulness", "Self-awareness")
MISSING_KEY_SUMMARY = (
    "Your reflection has been saved. "
    "Add your Google Gemini API key to generate personalized insights."
)
ERROR_SUMMARY = (
    "Your reflection has been saved. "
    "There was an issue generating insights, but your entry is stored safely."
)


class InsightGenerator:
    """Summarizes a reflection and tags it with a few themes using Gemini.

    ``generate`` never raises. Without an API key, or when the model call or
    its JSON cannot be used, a fixed fallback insight is returned instead.
    """

    def __init__(self, api_key: str = "", model: str = DEFAULT_MODEL):
        self._api_key = (api_key or "").strip()
        self._model = (model or "").strip() or DEFAULT_MODEL

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def generate(self, reflection: str, emotion: str | None = None) -> InsightResult:
        if not self.configured:
            _logger.warning("Gemini API key is not set; returning fallback insight.")
            return InsightResult(summary=MISSING_KEY_SUMMARY, themes=FALLBACK_THEMES)

        prompt = _build_insight_prompt(reflection, emotion)
        try:
            text = self._call_model(prompt)
            return _normalize_insight(_parse_ai_json(text))
        except Exception as exc:
            _logger.warning("Insight generation failed; returning fallback insight: %s", exc)
            return InsightResult(summary=ERROR_SUMMARY, themes=FALLBACK_THEMES)

    def _call_model(self, prompt: str) -> str:
        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model)
        response = model.generate_content(
            prompt,
            generation_config={"temperature": 0.4, "response_mime_type": "application/json"},
        )
        text = response.text
        if not isinstance(text, str) or not text.strip():
            raise RuntimeError("Gemini response did not include text output.")
        return text


def _build_insight_prompt(reflection: str, emotion: str | None) -> str:
    emotion_line = f"The user selected the emotion: {emotion.strip()}.\n" if emotion and emotion.strip() else ""
    return (
        "You are a compassionate AI assistant that helps people understand their emotions "
        "and thoughts through journal entries. Provide empathetic, insightful, and supportive analysis.\n\n"
        "Analyze the following journal entry and provide:\n"
        "1. A personalized summary (2-3 sentences) that captures the emotional tone and key thoughts\n"
        "2. 3-5 key themes (single words or short phrases) that represent the main topics or patterns\n\n"
        f"{emotion_line}"
        "Journal Entry:\n"
        f"\"{reflection.strip()}\"\n\n"
        "Respond in JSON format with this exact structure:\n"
        "{\"summary\": \"2-3 sentence personalized summary here\", "
        "\"themes\": [\"theme1\", \"theme2\", \"theme3\"]}\n"
        "Make the summary empathetic, insightful, and supportive. "
        "Keep themes concise (1-2 words each). No markdown, no prose outside JSON."
    )


def _parse_ai_json(text: str) -> dict[str, Any]:
    trimmed = _strip_code_fence(text.strip())
    if not trimmed:
        raise RuntimeError("AI response was empty.")
    try:
        parsed = json.loads(trimmed)
    except json.JSONDecodeError:
        start = trimmed.find("{")
        end = trimmed.rfind("}")
        if start == -1 or end == -1 or start >= end:
            raise RuntimeError("AI response did not contain valid JSON.")
        try:
            parsed = json.loads(trimmed[start : end + 1])
        except json.JSONDecodeError as exc:
            raise RuntimeError("AI response contained invalid JSON.") from exc
    if not isinstance(parsed, dict):
        raise RuntimeError("AI response JSON was not an object.")
    return parsed


def _strip_code_fence(text: str) -> str:
    if not text.startswith("```"):
        return text
    body = text[3:]
    if body.startswith("json"):
        body = body[4:]
    end = body.rfind("```")
    if end != -1:
        body = body[:end]
    return body.strip()


def _normalize_insight(parsed: dict[str, Any]) -> InsightResult:
    summary = parsed.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        raise ValueError("AI response is missing a summary.")
    raw_themes = parsed.get("themes")
    if not isinstance(raw_themes, list):
        raise ValueError("AI response themes must be a list.")
    themes = [theme.strip() for theme in raw_themes if isinstance(theme, str) and theme.strip()]
    return InsightResult(summary=summary.strip(), themes=tuple(themes[:MAX_THEMES_PER_INSIGHT]))
