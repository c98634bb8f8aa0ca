"""
Live-mode strategy for the presenter: POST the selection to the backend.
"""
import asyncio
from typing import List, Optional

import requests
from pydantic import ValidationError

from logger import get_logger
from predictor import SymptomPredictor, run_cancellable
from prediction_errors import (
    EmptyInputError,
    MalformedResponseError,
    TransportError,
    error_for_status,
)
from pydantic_models import DiagnosisRecord

log = get_logger("api_client")


class BackendClient(SymptomPredictor):

    def __init__(self, api_url: str, timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.api_url = api_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def predict_blocking(self, symptoms: List[str]) -> DiagnosisRecord:
        if not symptoms:
            raise EmptyInputError("No symptoms supplied")

        try:
            resp = self.session.post(self.api_url, json={"symptoms": symptoms}, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(str(e)) from e

        if resp.status_code == 400:
            raise EmptyInputError(_error_text(resp))
        if not resp.ok:
            raise error_for_status(resp.status_code, resp.text)

        try:
            return DiagnosisRecord.model_validate_json(resp.text)
        except ValidationError as e:
            log.error("Backend returned an invalid record: %r", resp.text)
            raise MalformedResponseError("Backend returned an invalid record", raw_text=resp.text) from e

    async def predict(self, symptoms, cancel_token: Optional[asyncio.Event] = None) -> DiagnosisRecord:
        labels = list(symptoms)
        if not labels:
            raise EmptyInputError("No symptoms supplied")
        return await run_cancellable(asyncio.to_thread(self.predict_blocking, labels), cancel_token)


def _error_text(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict):
        return str(body.get("error", ""))
    return resp.text
