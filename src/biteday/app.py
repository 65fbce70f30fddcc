"""BiteDay — Streamlit page for the catch log and today's fishing index."""

import asyncio
import datetime
import logging

import streamlit as st
from dotenv import load_dotenv

load_dotenv()

from biteday.config import Settings  # noqa: E402
from biteday.session import create_session  # noqa: E402

st.set_page_config(
    page_title="BiteDay",
    page_icon="🎣",
    layout="centered",
    initial_sidebar_state="collapsed",
)

st.markdown(
    """
    <style>
    .overlay-box {
        background: rgba(0, 0, 0, 0.05);
        border-radius: 12px;
        padding: 1rem 1.4rem;
        margin-bottom: 0.5rem;
    }
    .index-value { font-size: 3rem; font-weight: 700; line-height: 1; }
    </style>
    """,
    unsafe_allow_html=True,
)

# --- Session state initialization ---
# One Session per browser session. Commands run to completion inside
# asyncio.run, so background enrichment is settled before each rerender.
if "session" not in st.session_state:
    _settings = Settings.from_env()
    logging.basicConfig(level=_settings.log_level)
    _session = create_session(_settings)

    async def _boot() -> None:
        await _session.initialize()
        await _session.settle()

    asyncio.run(_boot())
    st.session_state.session = _session

session = st.session_state.session

# --- Error message ---
if session.error:
    ecol1, ecol2 = st.columns([5, 1])
    with ecol1:
        st.error(session.error)
    with ecol2:
        if st.button("Dismiss", key="clear_error"):
            session.clear_error()
            st.rerun()

# --- Conditions ---
st.markdown(
    f"<div class='overlay-box'>"
    f"<div class='index-value'>{session.fishing_index}</div>"
    f"<div>Fishing index · {session.fishing_index_label}</div></div>",
    unsafe_allow_html=True,
)
wcol, mcol = st.columns(2)
with wcol:
    st.metric(
        f"{session.weather_icon} {session.weather_condition}",
        f"{session.temperature}°C" if session.has_weather else "–",
    )
    if session.has_weather:
        st.caption(f"Humidity {session.humidity}% · Wind {session.wind_speed:.1f} km/h")
with mcol:
    st.metric(
        f"{session.moon_phase_icon} {session.moon_phase_name}",
        f"{session.moon_illumination:.0%}",
    )

if st.button("↻ Refresh conditions", use_container_width=True):
    asyncio.run(session.refresh())
    st.rerun()

st.divider()

# --- Add entry ---
with st.form("add_entry", clear_on_submit=True):
    acol1, acol2 = st.columns(2)
    with acol1:
        caught_on = st.date_input("Date", value=datetime.date.today())
        location = st.text_input("Location")
    with acol2:
        species = st.text_input("Species")
        weight = st.number_input("Weight (kg)", min_value=0.0, step=0.1, format="%.2f")
    submitted = st.form_submit_button("Add catch", use_container_width=True)

if submitted:
    asyncio.run(session.add_record(caught_on, location, species, weight))
    st.rerun()

# --- Log ---
st.subheader(f"Catches ({session.count}) · {session.total_weight:.2f} kg")
for record in session.records:
    rcol1, rcol2 = st.columns([5, 1])
    with rcol1:
        st.markdown(
            f"**{record.species}** · {record.weight:.2f} kg  \n"
            f"{record.location} · {record.timestamp:%Y-%m-%d}"
        )
    with rcol2:
        if st.button("Delete", key=f"delete_{record.id}"):
            asyncio.run(session.delete_record(record.id))
            st.rerun()
