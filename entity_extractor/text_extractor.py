"""Text extraction from plain text and PDF documents using PyMuPDF and pdfplumber"""
import asyncio
import io
import logging
from typing import List

import fitz  # PyMuPDF
import pdfplumber

from .config import SUPPORTED_MIME_TYPES
from .errors import ExtractionFailure, UnsupportedFormat
from .models import Document

logger = logging.getLogger(__name__)

PLAIN_TEXT = "text/plain"
PDF = "application/pdf"


class TextExtractor:
    """Normalizes an uploaded document into a single text blob"""

    def __init__(self, use_pymupdf: bool = True):
        # PyMuPDF first for better performance; pdfplumber is then only the fallback
        self.use_pymupdf = use_pymupdf

    async def normalize(self, document: Document) -> str:
        """
        Convert a document into plain text

        Args:
            document: Raw bytes plus declared MIME type

        Returns:
            Document text. PDF pages are emitted in page order, one
            newline-terminated block per page.
        """
        if document.mime_type not in SUPPORTED_MIME_TYPES:
            raise UnsupportedFormat(document.mime_type)

        if document.mime_type == PLAIN_TEXT:
            return self._decode_text(document.content)
        return await asyncio.to_thread(self.extract_pdf_text, document.content)

    def _decode_text(self, content: bytes) -> str:
        try:
            return content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ExtractionFailure(f"Failed to read file: text is not valid UTF-8 ({e})") from e

    def extract_pdf_text(self, pdf_bytes: bytes) -> str:
        """
        Extract text from PDF bytes, all pages or nothing

        Args:
            pdf_bytes: PDF file as bytes

        Returns:
            Concatenated page texts
        """
        try:
            if self.use_pymupdf:
                pages = self._extract_pymupdf(pdf_bytes)
            else:
                pages = self._extract_pdfplumber(pdf_bytes)
        except Exception as e:
            # Fallback to pdfplumber if PyMuPDF fails
            if not self.use_pymupdf:
                raise ExtractionFailure(f"Failed to extract text from PDF: {e}") from e
            logger.warning("PyMuPDF could not read PDF (%s), trying pdfplumber", e)
            try:
                pages = self._extract_pdfplumber(pdf_bytes)
            except Exception as fallback_error:
                raise ExtractionFailure(f"Failed to extract text from PDF: {e}") from fallback_error

        logger.info("Extracted text from %d PDF page(s)", len(pages))
        return "".join(page_text + "\n" for page_text in pages)

    def _extract_pymupdf(self, pdf_bytes: bytes) -> List[str]:
        """Extract using PyMuPDF (fitz), one string per page"""
        pages = []
        with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
            for page in doc:
                fragments = []
                text_dict = page.get_text("dict")
                for block in text_dict["blocks"]:
                    if "lines" in block:  # Text block
                        for line in block["lines"]:
                            for span in line["spans"]:
                                fragments.append(span["text"])
                pages.append(" ".join(fragments))
        return pages

    def _extract_pdfplumber(self, pdf_bytes: bytes) -> List[str]:
        """Extract using pdfplumber (fallback), one string per page"""
        pages = []
        with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
            for page in pdf.pages:
                words = page.extract_words()
                pages.append(" ".join(word.get("text", "") for word in words))
        return pages
