"""
PDF summary pipeline.

Extracts text from PDFs, pulls typed fields out of it with regex rules,
summarizes the result through Ollama and writes it to disk, one record at a time.
"""

__version__ = "0.1.0"
