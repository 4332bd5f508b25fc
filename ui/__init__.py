"""
UI package: Streamlit dashboard and display preferences.
"""
