from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

import streamlit as st

ENV_PREFIX = "RETAIL_ERP_"
SESSION_OVERRIDES_KEY = "retail_erp_settings"


@dataclass(frozen=True)
class Settings:
    business_name: str = "Hanuman Trader"
    currency: str = "INR"
    currency_symbol: str = "₹"
    notification_limit: int = 50
    dead_stock_days: int = 60
    expiry_warning_days: int = 30
    demo_seed: int = 7
    gemini_api_key: Optional[str] = None
    assistant_model: str = "gemini-2.5-flash"
    assistant_timeout_seconds: int = 30
    log_level: str = "INFO"


def _int_or_default(raw: Optional[str], default: int) -> int:
    if raw is None or str(raw).strip() == "":
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        return default


def load_settings(env: Optional[Mapping[str, str]] = None, overrides: Optional[Mapping] = None) -> Settings:
    # Priority order:
    # 1) Explicit overrides (session state, set via Data Management page)
    # 2) Environment variables
    # 3) Defaults
    env = os.environ if env is None else env
    overrides = dict(overrides or {})
    base = Settings()

    api_key = env.get("GEMINI_API_KEY") or env.get("API_KEY") or None

    values = {
        "business_name": env.get(ENV_PREFIX + "BUSINESS_NAME", base.business_name),
        "demo_seed": _int_or_default(env.get(ENV_PREFIX + "DEMO_SEED"), base.demo_seed),
        "gemini_api_key": api_key,
        "assistant_model": env.get(ENV_PREFIX + "ASSISTANT_MODEL", base.assistant_model),
        "assistant_timeout_seconds": _int_or_default(
            env.get(ENV_PREFIX + "ASSISTANT_TIMEOUT"), base.assistant_timeout_seconds
        ),
        "log_level": str(env.get(ENV_PREFIX + "LOG_LEVEL", base.log_level)).upper(),
    }

    known = set(Settings.__dataclass_fields__)
    values.update({k: v for k, v in overrides.items() if k in known})
    return Settings(**values)


@st.cache_resource
def _cached_settings() -> Settings:
    return load_settings()


def get_settings() -> Settings:
    overrides = st.session_state.get(SESSION_OVERRIDES_KEY)
    if overrides:
        return load_settings(overrides=overrides)
    return _cached_settings()


def persist_session_overrides(**values) -> None:
    current = dict(st.session_state.get(SESSION_OVERRIDES_KEY) or {})
    current.update(values)
    # Update session for immediate effect
    st.session_state[SESSION_OVERRIDES_KEY] = current
