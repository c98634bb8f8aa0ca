# app.py — Flask backend proxying symptom predictions to the AI gateway
from flask import Flask, request, jsonify
from werkzeug.exceptions import HTTPException
from pydantic import ValidationError

from config import load_settings
from llm_wrapper import DelegatedInferenceStrategy
from logger import get_logger, setup_logger
from prediction_errors import PredictionError
from pydantic_models import PredictRequest
from symptom_catalog import SYMPTOM_CATALOG

log = get_logger("app")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": (
        "authorization, x-client-info, apikey, content-type, x-supabase-client-platform, "
        "x-supabase-client-platform-version, x-supabase-client-runtime, x-supabase-client-runtime-version"
    ),
}


def create_app(predictor=None, settings=None) -> Flask:
    """
    Build the backend. Without an injected predictor the AI gateway strategy is
    built from settings, so a missing credential fails here rather than per request.
    """
    if predictor is None:
        settings = settings or load_settings()
        setup_logger(settings.log_level)
        predictor = DelegatedInferenceStrategy.from_settings(settings)

    app = Flask(__name__)
    app.config["PREDICTOR"] = predictor

    @app.after_request
    def add_cors_headers(response):
        response.headers.update(CORS_HEADERS)
        return response

    @app.errorhandler(Exception)
    def unexpected_error(e):
        if isinstance(e, HTTPException):
            return e
        log.exception("Unexpected prediction failure")
        return jsonify({"error": f"Failed to generate prediction: {e}"}), 500

    @app.route("/", methods=["GET"])
    def index():
        return "AI Symptom Prediction — POST /api/predict-disease with {'symptoms': ['Fever', ...]}"

    @app.route("/api/symptoms", methods=["GET"])
    def symptoms():
        return jsonify({category: sorted(labels) for category, labels in SYMPTOM_CATALOG.items()})

    @app.route("/api/predict-disease", methods=["POST", "OPTIONS"])
    async def predict_disease():
        if request.method == "OPTIONS":
            return "", 200

        data = request.get_json(force=True, silent=True)
        try:
            req = PredictRequest.model_validate(data)
        except ValidationError:
            return jsonify({"error": "Please provide at least one symptom"}), 400

        try:
            record = await app.config["PREDICTOR"].predict(req.symptoms)
        except PredictionError as e:
            return _error_response(e)
        if record is None:
            return jsonify({"error": "Please provide at least one symptom"}), 400
        return jsonify(record.to_wire())

    return app


def _error_response(err: PredictionError):
    if err.http_status == 400:
        return jsonify({"error": "Please provide at least one symptom"}), 400
    if err.http_status in (402, 429):
        return jsonify({"error": err.user_message}), err.http_status
    log.error("Prediction error: %s", err)
    return jsonify({"error": f"Failed to generate prediction: {err}"}), 500


if __name__ == "__main__":
    settings = load_settings()
    create_app(settings=settings).run(host=settings.host, port=settings.port)
