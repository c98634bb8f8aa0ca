from types import MappingProxyType

# category -> symptom labels shown on the checklist
SYMPTOM_CATALOG = MappingProxyType({
    "General": frozenset({"Fever", "Fatigue", "Body Ache"}),
    "Respiratory": frozenset({"Cough", "Cold", "Sore Throat", "Shortness of Breath"}),
    "Cardiovascular": frozenset({"Chest Pain"}),
    "Neurological": frozenset({"Headache", "Dizziness"}),
    "Digestive": frozenset({"Vomiting", "Nausea"}),
})

ALL_SYMPTOMS = tuple(sorted(label for labels in SYMPTOM_CATALOG.values() for label in labels))


def category_of(label):
    for category, labels in SYMPTOM_CATALOG.items():
        if label in labels:
            return category
    return None
