from __future__ import annotations

import streamlit as st

from retail.config import get_settings
from retail.services.demo_data import build_demo_store
from retail.store import RetailStore

STORE_KEY = "retail_store"


def get_store() -> RetailStore:
    # One store per browser session, seeded from demo data on first access.
    if STORE_KEY not in st.session_state:
        settings = get_settings()
        st.session_state[STORE_KEY] = build_demo_store(settings, seed=settings.demo_seed)
    return st.session_state[STORE_KEY]


def reset_store() -> RetailStore:
    st.session_state.pop(STORE_KEY, None)
    return get_store()
