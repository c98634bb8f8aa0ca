import json

import pytest


@pytest.fixture
def record_payload():
    return {
        "disease": "Common Flu",
        "confidence": 85,
        "severity": "moderate",
        "description": "A viral infection of the respiratory tract.",
        "tips": ["Rest", "Drink fluids", "Monitor temperature"],
        "specialist": "General Physician",
        "alternative_diagnoses": [
            {"disease": "Common Cold", "confidence": 60},
            {"disease": "COVID-19", "confidence": 45},
        ],
        "urgency": "soon",
        "when_to_see_doctor": "If fever lasts more than three days.",
    }


@pytest.fixture
def record_json(record_payload):
    return json.dumps(record_payload)
