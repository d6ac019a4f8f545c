"""
Document text extraction and chunking for knowledge bases.

Supported types: txt, csv, json, pdf (pdfplumber), docx (python-docx).
CSV rows become a pretty-printed JSON array of records, so column names
travel with every value into the embedded chunks.
"""

from __future__ import annotations

import csv
import json
import logging

import pdfplumber
from docx import Document

from ..exceptions import UnsupportedFileTypeError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200


class DocumentProcessor:
    """Extracts plain text from uploaded files and splits it into chunks.

    Args:
        chunk_size: Characters per chunk
        chunk_overlap: Characters shared by consecutive chunks
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    ):
        if chunk_overlap >= chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def extract_text(self, file_path: str, file_type: str) -> str:
        """Extract the text of a document.

        Raises:
            UnsupportedFileTypeError: No extractor for file_type
            OSError: The file cannot be read
        """
        doc_type = (file_type or "").lower().lstrip(".")

        if doc_type == "txt":
            with open(file_path, "r", encoding="utf-8") as f:
                return f.read()

        if doc_type == "csv":
            with open(file_path, "r", encoding="utf-8", newline="") as f:
                records = list(csv.DictReader(f))
            return json.dumps(records, indent=2, ensure_ascii=False)

        if doc_type == "json":
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return json.dumps(data, indent=2, ensure_ascii=False)

        if doc_type == "pdf":
            with pdfplumber.open(file_path) as pdf:
                return "\n".join((page.extract_text() or "") for page in pdf.pages)

        if doc_type == "docx":
            document = Document(file_path)
            return "\n".join(paragraph.text for paragraph in document.paragraphs)

        raise UnsupportedFileTypeError(file_type)

    def chunk_text(self, text: str) -> list[str]:
        """Fixed-size windows advancing by chunk_size - chunk_overlap.

        The final window may be shorter (or lie entirely inside the overlap
        of the previous one); empty text yields no chunks.
        """
        chunks = []
        step = self.chunk_size - self.chunk_overlap
        start = 0
        while start < len(text):
            chunks.append(text[start:start + self.chunk_size])
            start += step
        return chunks
