"""
Frontend package for the research paper summarizer.

Contains the UI state controller, the Streamlit page and the launcher.
"""
