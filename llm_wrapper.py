"""
Delegated inference: ask an OpenAI-compatible AI gateway for a DiagnosisRecord.

Provides:
- build_messages: fixed system prompt + the user's symptoms in original order
- strip_code_fences / parse_and_validate_json: strict parsing of the completion
- DelegatedInferenceStrategy: one chat completion per prediction, with upstream
  failures classified into typed PredictionErrors (never retried here)
"""

import asyncio
import re
from typing import Iterable, List, Optional

import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from config import DEFAULT_GATEWAY_MODEL, DEFAULT_GATEWAY_URL
from logger import get_logger
from predictor import SymptomPredictor, run_cancellable
from prediction_errors import (
    ConfigurationError,
    EmptyInputError,
    MalformedResponseError,
    TransportError,
    error_for_status,
)
from pydantic_models import DiagnosisRecord

log = get_logger("llm_wrapper")

SYSTEM_PROMPT = """You are an advanced medical AI assistant specialized in preliminary disease prediction based on reported symptoms. You must respond ONLY with valid JSON, no markdown, no code fences, no extra text.

Analyze the provided symptoms and return a JSON object with this exact structure:
{
  "disease": "Most likely disease name",
  "confidence": 85,
  "severity": "low" | "moderate" | "high",
  "description": "2-3 sentence medical description of the condition",
  "tips": ["tip1", "tip2", "tip3", "tip4"],
  "specialist": "Recommended medical specialist",
  "alternative_diagnoses": [
    {"disease": "Alternative 1", "confidence": 60},
    {"disease": "Alternative 2", "confidence": 45}
  ],
  "urgency": "routine" | "soon" | "urgent" | "emergency",
  "when_to_see_doctor": "Brief guidance on when to seek medical attention"
}

Rules:
- confidence is 0-100 integer based on symptom specificity
- severity: low = manageable at home, moderate = see doctor soon, high = seek immediate care
- tips should be practical, actionable health recommendations
- Always provide 2 alternative diagnoses
- Be medically accurate but note this is for awareness only
- urgency: routine = within weeks, soon = within days, urgent = within 24h, emergency = immediately"""

# {symptoms} is replaced literally (not .format) so labels with braces stay intact
USER_TEMPLATE = (
    "Patient reports the following symptoms: {symptoms}. "
    "Analyze these symptoms and provide your disease prediction as JSON."
)

_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\n?", re.IGNORECASE)


def build_messages(symptoms: Iterable[str]) -> List[dict]:
    labels = list(symptoms)
    if not labels:
        raise EmptyInputError("No symptoms supplied")
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": USER_TEMPLATE.replace("{symptoms}", ", ".join(labels))},
    ]


def strip_code_fences(raw_text: str) -> str:
    return _FENCE_RE.sub("", raw_text).strip()


def parse_and_validate_json(raw_text: str) -> DiagnosisRecord:
    """
    Parse a completion as a DiagnosisRecord. Nothing is repaired or defaulted:
    bad JSON, missing fields, unknown fields, out-of-range confidence or an
    unknown severity/urgency all raise MalformedResponseError.
    """
    cleaned = strip_code_fences(raw_text or "")
    if not cleaned:
        raise MalformedResponseError("No content in AI response", raw_text=raw_text or "")
    try:
        return DiagnosisRecord.model_validate_json(cleaned)
    except ValidationError as e:
        raise MalformedResponseError(
            f"AI response failed validation: {e.error_count()} error(s)", raw_text=raw_text
        ) from e


class DelegatedInferenceStrategy(SymptomPredictor):
    """
    Without an injected client a fresh AsyncOpenAI client is opened per call,
    since each Flask async request runs on its own event loop.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_GATEWAY_URL,
        model: str = DEFAULT_GATEWAY_MODEL,
        timeout: float = 30.0,
        client: Optional[AsyncOpenAI] = None,
    ):
        if client is None and not api_key:
            raise ConfigurationError("An AI gateway API key is required")
        self.model = model
        self.client = client
        self._client_options = {
            "api_key": api_key,
            "base_url": base_url,
            "timeout": timeout,
            "max_retries": 0,
        }

    @classmethod
    def from_settings(cls, settings) -> "DelegatedInferenceStrategy":
        return cls(
            api_key=settings.require_api_key(),
            base_url=settings.gateway_url,
            model=settings.gateway_model,
            timeout=settings.timeout,
        )

    async def predict(self, symptoms, cancel_token: Optional[asyncio.Event] = None) -> DiagnosisRecord:
        messages = build_messages(symptoms)
        try:
            text = await run_cancellable(self._complete(messages), cancel_token)
            return parse_and_validate_json(text)
        except MalformedResponseError as e:
            log.error("Malformed AI response (%s): %r", e, e.raw_text)
            raise

    async def _complete(self, messages: List[dict]) -> str:
        if self.client is not None:
            return await self._create(self.client, messages)
        async with AsyncOpenAI(**self._client_options) as client:
            return await self._create(client, messages)

    async def _create(self, client: AsyncOpenAI, messages: List[dict]) -> str:
        try:
            resp = await client.chat.completions.create(model=self.model, messages=messages)
        except openai.APIStatusError as e:
            err = error_for_status(e.status_code, e.response.text)
            log.error("AI gateway error: %s %s", e.status_code, getattr(err, "body_excerpt", ""))
            raise err from e
        except openai.APIConnectionError as e:
            log.error("AI gateway unreachable: %s", e)
            raise TransportError(str(e)) from e

        # a 200 with a non-JSON body comes back from the SDK as a plain str
        if isinstance(resp, str):
            raise MalformedResponseError("AI response is not a chat completion", raw_text=resp)
        choices = getattr(resp, "choices", None)
        if not choices or getattr(choices[0], "message", None) is None:
            raise MalformedResponseError("No completion in AI response", raw_text=_raw_text(resp))
        return choices[0].message.content or ""


def _raw_text(resp) -> str:
    if hasattr(resp, "model_dump_json"):
        return resp.model_dump_json()
    return str(resp)
