import asyncio

import streamlit as st

from config import load_settings
from history import PredictionHistory
from predictor import build_predictor
from prediction_errors import CancelledError, PredictionError
from symptom_catalog import SYMPTOM_CATALOG

SEVERITY_ICONS = {"low": "🟢", "moderate": "🟠", "high": "🔴"}

settings = load_settings()

st.set_page_config(page_title="AI Symptom Prediction", page_icon="🩺", layout="centered")

if "predictor" not in st.session_state:
    st.session_state["predictor"] = build_predictor(settings)
if "history" not in st.session_state:
    st.session_state["history"] = PredictionHistory()
predictor = st.session_state["predictor"]
history = st.session_state["history"]

st.title("🩺 AI Symptom Prediction System")
st.info("For awareness only. This is not a medical diagnosis; consult a doctor for medical advice.")
st.caption(f"Mode: {'Live AI' if settings.mode == 'live' else 'Offline demo'}")

st.subheader("Select Your Symptoms")
selected = []
columns = st.columns(len(SYMPTOM_CATALOG))
for col, (category, labels) in zip(columns, SYMPTOM_CATALOG.items()):
    with col:
        st.markdown(f"**{category}**")
        for label in sorted(labels):
            if st.checkbox(label, key=f"symptom-{label}"):
                selected.append(label)


def show_record(record):
    st.subheader("🔎 Prediction")
    st.markdown(f"### {record.disease}")
    st.progress(record.confidence / 100, text=f"Confidence: {record.confidence}%")
    cols = st.columns(2)
    cols[0].markdown(f"**Severity:** {SEVERITY_ICONS[record.severity]} {record.severity.title()}")
    if record.urgency:
        cols[1].markdown(f"**Urgency:** {record.urgency.title()}")
    st.write(record.description)
    st.markdown(f"**Recommended specialist:** {record.specialist}")
    st.subheader("💡 Tips")
    for tip in record.tips:
        st.write("•", tip)
    if record.alternative_diagnoses:
        st.subheader("Other possibilities")
        for alt in record.alternative_diagnoses:
            st.write(f"{alt.disease} ({alt.confidence}%)")
    if record.when_to_see_doctor:
        st.warning(f"When to see a doctor: {record.when_to_see_doctor}")


if st.button("Predict Disease", type="primary"):
    if not selected:
        st.warning("Please select at least one symptom.")
    else:
        record = None
        with st.spinner("Analyzing symptoms…"):
            try:
                record = asyncio.run(predictor.predict(selected))
            except CancelledError:
                pass
            except PredictionError as e:
                st.error(e.user_message)
        if record is not None:
            history.add(selected, record)
            show_record(record)

st.sidebar.header("📊 Recent Predictions")
if len(history):
    st.sidebar.dataframe(history.to_dataframe(), hide_index=True)
    if st.sidebar.button("Clear history"):
        history.clear()
        st.rerun()
else:
    st.sidebar.info("No history yet.")
