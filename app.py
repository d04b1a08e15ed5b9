from __future__ import annotations

import logging

import streamlit as st

from retail.config import get_settings

st.set_page_config(page_title="Retail ERP (Demo)", page_icon="🏪", layout="wide")

logging.basicConfig(
    level=getattr(logging, get_settings().log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

pages = [
    st.Page("home.py", title="Home", icon="🏠"),
    st.Page("pages/1_📊_Dashboard.py", title="Dashboard", icon="📊"),
    st.Page("pages/2_📦_Inventory.py", title="Inventory", icon="📦"),
    st.Page("pages/3_🛒_Sales.py", title="Sales (POS)", icon="🛒"),
    st.Page("pages/4_🧾_GST_Report.py", title="GST Report", icon="🧾"),
    st.Page("pages/5_📈_Analytics.py", title="Analytics", icon="📈"),
    st.Page("pages/6_👥_Customers.py", title="Customers", icon="👥"),
    st.Page("pages/7_🚚_Suppliers.py", title="Suppliers", icon="🚚"),
    st.Page("pages/8_🤖_Assistant.py", title="AI Assistant", icon="🤖"),
    st.Page("pages/9_🧪_Data_Management.py", title="Data Management", icon="🧪"),
]

st.navigation(pages).run()
