from __future__ import annotations

import streamlit as st

from retail.config import get_settings
from retail.session import get_store

st.set_page_config(page_title="Retail ERP (Demo)", page_icon="🏪", layout="wide")

settings = get_settings()
store = get_store()

st.title(f"🏪 {settings.business_name} — Retail ERP")
st.caption("Multi-location inventory, point of sale, GST reporting and customer loyalty. All data lives in this session.")

with st.sidebar:
    st.subheader("Environment")
    st.write(f"**Business:** {settings.business_name}")
    st.write(f"**Currency:** {settings.currency}")
    st.write(f"**Locations:** {len(store.locations)}")
    st.write(f"**Assistant:** {'enabled' if settings.gemini_api_key else 'not configured'}")

c1, c2, c3, c4 = st.columns(4)
c1.metric("Products", f"{len(store.products)}")
c2.metric("Sales recorded", f"{len(store.sales)}")
c3.metric("Customers", f"{len(store.customers)}")
c4.metric("Transfers logged", f"{len(store.transfers)}")

st.subheader("Latest alerts")
latest = list(store.notifications)[:5]
if latest:
    for n in latest:
        st.write(f"**{n.type.value}** — {n.message}" + (f" · {n.details}" if n.details else ""))
else:
    st.caption("No alerts yet.")

st.info(
    "Use the left sidebar navigation. Start with **📊 Dashboard**, try a transfer in **📦 Inventory**, "
    "ring up a bill in **🛒 Sales**, then check **🧾 GST Report**. Reset the demo data from **🧪 Data Management**.",
    icon="ℹ️",
)
