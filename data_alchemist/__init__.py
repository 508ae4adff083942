"""Data Alchemist: spreadsheet cleanup, rule authoring and AI search for client/worker/task data."""
__version__ = "0.1.0"
