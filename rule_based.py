"""
Offline predictions from a fixed table of symptom combinations.

A selection has to match a known combination exactly (same labels, nothing
extra). Anything else gets a record from FALLBACK_ROTATION chosen by how many
symptoms were selected.
"""
import asyncio
from types import MappingProxyType
from typing import Iterable, Optional

from logger import get_logger
from predictor import SymptomPredictor, canonicalize
from pydantic_models import DiagnosisRecord

log = get_logger("rule_based")

KNOWN_COMBINATIONS = (
    (frozenset({"Fever", "Cough", "Cold"}), DiagnosisRecord(
        disease="Common Flu",
        confidence=87,
        severity="moderate",
        description="A viral infection of the nose, throat and lungs that usually clears up within one to two weeks.",
        tips=["Rest and stay hydrated", "Use a humidifier or steam inhalation",
              "Take fever reducers as directed on the label", "Stay home to avoid spreading it"],
        specialist="General Physician",
        alternative_diagnoses=[{"disease": "Common Cold", "confidence": 62},
                               {"disease": "COVID-19", "confidence": 41}],
        urgency="soon",
        when_to_see_doctor="If fever lasts more than three days or breathing becomes difficult.",
    )),
    (frozenset({"Fever", "Headache", "Fatigue"}), DiagnosisRecord(
        disease="Viral Infection",
        confidence=79,
        severity="moderate",
        description="A general viral illness causing fever, aches and tiredness while the immune system clears it.",
        tips=["Get plenty of sleep", "Drink fluids regularly",
              "Monitor your temperature twice a day"],
        specialist="General Physician",
        alternative_diagnoses=[{"disease": "Influenza", "confidence": 58},
                               {"disease": "Dengue Fever", "confidence": 33}],
        urgency="soon",
        when_to_see_doctor="If symptoms worsen after a few days or a rash appears.",
    )),
    (frozenset({"Chest Pain", "Dizziness"}), DiagnosisRecord(
        disease="Hypertension",
        confidence=72,
        severity="high",
        description="Persistently raised blood pressure that strains the heart and can cause chest discomfort and dizziness.",
        tips=["Sit down and rest immediately", "Avoid caffeine and heavy exertion",
              "Check your blood pressure if you have a monitor", "Reduce salt intake"],
        specialist="Cardiologist",
        alternative_diagnoses=[{"disease": "Angina", "confidence": 55},
                               {"disease": "Anxiety Attack", "confidence": 38}],
        urgency="urgent",
        when_to_see_doctor="Seek emergency care if chest pain is severe, spreading, or lasts more than a few minutes.",
    )),
    (frozenset({"Vomiting", "Fatigue", "Dizziness"}), DiagnosisRecord(
        disease="Food Poisoning",
        confidence=83,
        severity="moderate",
        description="Illness caused by contaminated food, usually resolving within a few days once the body clears it.",
        tips=["Sip oral rehydration solution", "Eat bland food once vomiting stops",
              "Avoid dairy, alcohol and fatty food"],
        specialist="Gastroenterologist",
        alternative_diagnoses=[{"disease": "Gastroenteritis", "confidence": 64},
                               {"disease": "Dehydration", "confidence": 47}],
        urgency="soon",
        when_to_see_doctor="If you cannot keep fluids down for a day or see blood in vomit.",
    )),
    (frozenset({"Fever", "Cough", "Chest Pain"}), DiagnosisRecord(
        disease="Bronchitis",
        confidence=76,
        severity="moderate",
        description="Inflammation of the airways in the lungs that causes coughing and chest discomfort.",
        tips=["Avoid smoke and other irritants", "Drink warm fluids",
              "Rest your voice and body", "Use a humidifier at night"],
        specialist="Pulmonologist",
        alternative_diagnoses=[{"disease": "Pneumonia", "confidence": 52},
                               {"disease": "Common Flu", "confidence": 40}],
        urgency="soon",
        when_to_see_doctor="If the cough lasts more than three weeks or you become short of breath.",
    )),
    (frozenset({"Headache", "Dizziness"}), DiagnosisRecord(
        disease="Migraine",
        confidence=81,
        severity="low",
        description="Recurring headaches, often one-sided, that may come with dizziness and sensitivity to light.",
        tips=["Rest in a dark, quiet room", "Keep a headache diary to find triggers",
              "Stay hydrated and keep regular meals"],
        specialist="Neurologist",
        alternative_diagnoses=[{"disease": "Tension Headache", "confidence": 57},
                               {"disease": "Vertigo", "confidence": 35}],
        urgency="routine",
        when_to_see_doctor="If headaches become more frequent or come with weakness or confusion.",
    )),
)

FALLBACK_ROTATION = (
    DiagnosisRecord(
        disease="General Viral Infection",
        confidence=65,
        severity="low",
        description="A mild, self-limiting viral illness with non-specific symptoms.",
        tips=["Rest and drink fluids", "Watch for new or worsening symptoms"],
        specialist="General Physician",
        urgency="routine",
        when_to_see_doctor="If symptoms last more than a week.",
    ),
    DiagnosisRecord(
        disease="Seasonal Allergy",
        confidence=58,
        severity="low",
        description="An immune reaction to pollen, dust or other airborne triggers.",
        tips=["Limit outdoor time when pollen counts are high", "Keep windows closed",
              "Rinse nasal passages with saline"],
        specialist="Allergist",
        urgency="routine",
        when_to_see_doctor="If over-the-counter remedies do not help.",
    ),
    DiagnosisRecord(
        disease="Mild Flu",
        confidence=71,
        severity="low",
        description="A light influenza infection that usually resolves with rest.",
        tips=["Stay home and rest", "Drink warm fluids", "Wash hands often"],
        specialist="General Physician",
        urgency="routine",
        when_to_see_doctor="If a high fever develops or breathing becomes difficult.",
    ),
)

_RECORDS_BY_KEY = MappingProxyType({
    canonicalize(symptoms): record for symptoms, record in KNOWN_COMBINATIONS
})


def lookup(key: str) -> Optional[DiagnosisRecord]:
    return _RECORDS_BY_KEY.get(key)


def fallback_for(size: int) -> DiagnosisRecord:
    return FALLBACK_ROTATION[size % len(FALLBACK_ROTATION)]


class TableMatchStrategy(SymptomPredictor):

    def predict_sync(self, symptoms: Iterable[str]) -> Optional[DiagnosisRecord]:
        selected = set(symptoms)
        if not selected:
            return None

        key = canonicalize(selected)
        record = lookup(key)
        if record is not None:
            log.debug("Known combination matched: %s -> %s", key, record.disease)
            return record

        record = fallback_for(len(selected))
        log.info("No known combination for %s, using fallback %s", key, record.disease)
        return record

    async def predict(self, symptoms, cancel_token: Optional[asyncio.Event] = None):
        return self.predict_sync(symptoms)
