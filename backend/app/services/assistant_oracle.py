"""OpenAI-backed text oracle with ordered model fallback."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import openai

from app.core.config import settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are the Pokrok assistant. You turn a user's request about their goals, "
    "steps, habits, areas and metrics into a JSON object with the keys "
    "'message' and 'instructions'. Reply with that JSON object only."
)


@dataclass
class OracleReply:
    text: str
    model: str


class OracleUnavailableError(RuntimeError):
    """Raised when no configured model produced a reply."""

    def __init__(self, message: str, attempts: Optional[List[Tuple[str, str]]] = None) -> None:
        super().__init__(message)
        self.attempts = attempts or []


def generate_reply(prompt: str, models: Optional[Sequence[str]] = None) -> OracleReply:
    """Ask each configured model in turn and return the first non-empty reply."""
    api_key = settings.openai_api_key
    if not api_key:
        raise OracleUnavailableError("OPENAI_API_KEY is not configured")

    candidates = list(models or settings.assistant_models)
    if not candidates:
        raise OracleUnavailableError("No assistant models are configured")

    client = openai.OpenAI(api_key=api_key)
    attempts: List[Tuple[str, str]] = []
    for model in candidates:
        try:
            completion = client.chat.completions.create(
                model=model,
                response_format={"type": "json_object"},
                temperature=settings.assistant_temperature,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except openai.OpenAIError as exc:
            logger.warning("Assistant model %s failed: %s", model, exc)
            attempts.append((model, str(exc)))
            continue

        text = completion.choices[0].message.content if completion.choices else None
        if not text:
            logger.warning("Assistant model %s returned an empty reply", model)
            attempts.append((model, "empty reply"))
            continue

        if attempts:
            logger.info("Assistant reply served by fallback model %s", model)
        return OracleReply(text=text, model=model)

    raise OracleUnavailableError(
        "All assistant models failed: " + "; ".join(f"{model}: {error}" for model, error in attempts),
        attempts=attempts,
    )
