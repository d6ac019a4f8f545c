"""
Tests for document extraction and chunking.
"""

import json

import pytest
from docx import Document

from src.agentbuilder.exceptions import UnsupportedFileTypeError
from src.agentbuilder.knowledge.processor import DocumentProcessor


@pytest.fixture
def processor():
    return DocumentProcessor()


# ============================================
# Extraction
# ============================================


class TestExtractText:
    def test_txt(self, processor, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("Refunds within 30 days.", encoding="utf-8")

        assert processor.extract_text(str(path), "txt") == "Refunds within 30 days."

    def test_csv_becomes_json_records(self, processor, tmp_path):
        path = tmp_path / "prices.csv"
        path.write_text("sku,price\nA1,10\nB2,20\n", encoding="utf-8")

        text = processor.extract_text(str(path), "csv")

        assert json.loads(text) == [{"sku": "A1", "price": "10"}, {"sku": "B2", "price": "20"}]

    def test_json_is_pretty_printed(self, processor, tmp_path):
        path = tmp_path / "data.json"
        path.write_text('{"a": [1, 2]}', encoding="utf-8")

        assert processor.extract_text(str(path), ".JSON") == json.dumps({"a": [1, 2]}, indent=2)

    def test_docx(self, processor, tmp_path):
        path = tmp_path / "policy.docx"
        document = Document()
        document.add_paragraph("First paragraph")
        document.add_paragraph("Second paragraph")
        document.save(str(path))

        assert processor.extract_text(str(path), "docx") == "First paragraph\nSecond paragraph"

    def test_unsupported_type(self, processor, tmp_path):
        with pytest.raises(UnsupportedFileTypeError):
            processor.extract_text(str(tmp_path / "deck.pptx"), "pptx")

    def test_missing_file(self, processor, tmp_path):
        with pytest.raises(OSError):
            processor.extract_text(str(tmp_path / "gone.txt"), "txt")


# ============================================
# Chunking
# ============================================


class TestChunkText:
    def test_empty_text(self, processor):
        assert processor.chunk_text("") == []

    def test_short_text_single_chunk(self, processor):
        assert processor.chunk_text("hello") == ["hello"]

    def test_windows_overlap(self, processor):
        text = "".join(str(i % 10) for i in range(2500))

        chunks = processor.chunk_text(text)

        assert [len(c) for c in chunks] == [1000, 1000, 900, 100]
        assert chunks[0][800:] == chunks[1][:200]

    def test_trailing_overlap_chunk_is_kept(self, processor):
        chunks = processor.chunk_text("x" * 1000)

        assert [len(c) for c in chunks] == [1000, 200]

    def test_custom_window(self):
        processor = DocumentProcessor(chunk_size=4, chunk_overlap=1)

        assert processor.chunk_text("abcdefghij") == ["abcd", "defg", "ghij", "j"]

    def test_overlap_must_be_smaller(self):
        with pytest.raises(ValueError):
            DocumentProcessor(chunk_size=100, chunk_overlap=100)
