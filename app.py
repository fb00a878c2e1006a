import streamlit as st
from auth import show_auth_page
from logging_setup import configure_logging
from styles import inject_css

st.set_page_config(page_title="Budget Manager", page_icon="💼", layout="wide", initial_sidebar_state="collapsed")

configure_logging()
inject_css()

if not show_auth_page():
    st.stop()
else:
    st.switch_page("pages/1_📊_Dashboard.py")
