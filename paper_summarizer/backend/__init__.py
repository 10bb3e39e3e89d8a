"""
Backend package for the research paper summarizer.

Contains the paper store, the text-generation client, upload text
extraction and the HTTP API over the papers table.
"""
