"""
Typed failures of a disease prediction request.

Every strategy raises one of these instead of returning a partial record.
The HTTP layer turns them into `{"error": ...}` responses using `http_status`
and `user_message`; the Streamlit presenter shows `user_message`.
"""

BODY_EXCERPT_LIMIT = 500


class ConfigurationError(RuntimeError):
    """Raised at startup when required settings are missing or invalid."""


class PredictionError(Exception):
    http_status = 500
    user_message = "Failed to generate prediction."
    retryable = False

    def __init__(self, message: str = ""):
        super().__init__(message or self.user_message)


class EmptyInputError(PredictionError):
    http_status = 400
    user_message = "Please select at least one symptom."


class RateLimitedError(PredictionError):
    http_status = 429
    user_message = "AI service is busy. Please try again in a moment."
    retryable = True


class QuotaExceededError(PredictionError):
    http_status = 402
    user_message = "AI usage limit reached. Please try again later."


class UpstreamError(PredictionError):
    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body_excerpt = (body or "")[:BODY_EXCERPT_LIMIT]
        super().__init__(f"AI gateway error [{status_code}]")


class TransportError(PredictionError):
    user_message = "Could not reach the prediction service. Check your connection."


class MalformedResponseError(PredictionError):
    def __init__(self, message: str, raw_text: str = ""):
        self.raw_text = raw_text
        super().__init__(message)


class CancelledError(PredictionError):
    """The caller withdrew interest; never shown to the user."""

    user_message = ""

    def __init__(self, message: str = "Prediction cancelled"):
        super().__init__(message)


def error_for_status(status_code: int, body: str = "") -> PredictionError:
    if status_code == 429:
        return RateLimitedError(f"Upstream throttled the request [{status_code}]")
    if status_code == 402:
        return QuotaExceededError(f"Upstream usage cap reached [{status_code}]")
    return UpstreamError(status_code, body)
