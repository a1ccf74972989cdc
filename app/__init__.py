"""PanelForge application package: DB access, store layer, validation and Streamlit UI."""
