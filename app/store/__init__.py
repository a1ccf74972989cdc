"""
Store layer: CRUD over the PanelForge schema.

Every function takes an open sqlite3 connection, validates its input with
app.validation and raises app.errors.AppError subclasses for missing records
or referential violations. The REST API and the Streamlit pages share it.
"""
