"""
Research paper summarizer package.

This package contains a single-page application that stores uploaded
research papers in a database and uses a hosted language model to
summarise them, analyse them for bias and answer questions about them.
It includes the backend store, generator and parser modules, a small
HTTP API and a Streamlit frontend.
"""
