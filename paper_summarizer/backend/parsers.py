"""
Text extraction for uploaded papers.

The application only needs the plain text of an uploaded document, so
this module turns the common formats a paper arrives in (plain text or
Markdown, PDF, Word and HTML) into a single string.  A simple detection
function chooses the right extractor based on file extension and
content heuristics.  The document's structure is not interpreted.
"""

from __future__ import annotations

import io
import logging
from typing import BinaryIO, Union

import docx as docx_lib  # type: ignore
import pdfplumber  # type: ignore
from bs4 import BeautifulSoup  # type: ignore

from .errors import UnsupportedFormatError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ["txt", "md", "pdf", "docx", "html", "htm"]


def extract_text_from_pdf(file_obj: BinaryIO) -> str:
    """Concatenate the text of every page of a PDF."""
    with pdfplumber.open(file_obj) as pdf:
        return "\n\n".join(page.extract_text() or "" for page in pdf.pages)


def extract_text_from_docx(file_obj: BinaryIO) -> str:
    """Join the non-empty paragraphs of a Word document."""
    document = docx_lib.Document(file_obj)
    return "\n".join(para.text for para in document.paragraphs if para.text.strip())


def extract_text_from_html(content: bytes) -> str:
    """Strip markup from an HTML document, dropping scripts and styles."""
    soup = BeautifulSoup(content, 'html.parser')
    for tag in soup(['script', 'style']):
        tag.decompose()
    return soup.get_text(separator='\n')


def extract_text_from_plain(content: bytes) -> str:
    return content.decode('utf-8', errors='ignore')


def detect_format(filename: str, content: bytes) -> str:
    """Attempt to detect the document format based on filename and content."""
    filename_lower = filename.lower()
    # extension based detection
    if filename_lower.endswith('.pdf'):
        return 'pdf'
    if filename_lower.endswith('.docx'):
        return 'docx'
    if filename_lower.endswith(('.html', '.htm')):
        return 'html'
    if filename_lower.endswith(('.txt', '.md')):
        return 'text'
    # content heuristics
    if content.startswith(b'%PDF'):
        return 'pdf'
    if content.startswith(b'PK\x03\x04') and b'word/' in content[:4000]:
        return 'docx'
    snippet = content[:2000].decode('utf-8', errors='ignore').lower()
    if '<html' in snippet or '<!doctype html' in snippet:
        return 'html'
    return 'unknown'


def extract_text(file_obj: Union[BinaryIO, io.BytesIO], filename: str) -> str:
    """Detect the format of an uploaded file and return its plain text.

    Raises:
        UnsupportedFormatError: if the format is not recognised or the
            extractor cannot read the file.
    """
    content = file_obj.read()
    file_format = detect_format(filename, content)
    logger.info(f"Extracting text from {filename} (format: {file_format})")
    try:
        if file_format == 'pdf':
            text = extract_text_from_pdf(io.BytesIO(content))
        elif file_format == 'docx':
            text = extract_text_from_docx(io.BytesIO(content))
        elif file_format == 'html':
            text = extract_text_from_html(content)
        elif file_format == 'text':
            text = extract_text_from_plain(content)
        else:
            raise UnsupportedFormatError(f"Unsupported file format: {filename}")
    except UnsupportedFormatError:
        raise
    except Exception as e:
        logger.error(f"Error extracting text from {filename}: {e}")
        raise UnsupportedFormatError(f"Could not read {filename}: {e}") from e
    return text.strip()
