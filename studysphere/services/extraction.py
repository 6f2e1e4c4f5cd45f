# studysphere/services/extraction.py
import logging
from io import BytesIO
from pathlib import Path
from typing import Optional

import requests
from docx import Document
from pypdf import PdfReader

from studysphere.errors import ExtractionError

logger = logging.getLogger(__name__)

PDF_EXTS = (".pdf",)
DOCX_EXTS = (".docx",)
IMAGE_EXTS = (".jpg", ".jpeg", ".png")
TEXT_EXTS = (".txt", ".md")

# OCR fragments under this confidence are dropped
OCR_MIN_SCORE = 0.5


def extract_text_from_pdf(data: bytes) -> str:
    try:
        reader = PdfReader(BytesIO(data))
        parts = [(page.extract_text() or "").strip() for page in reader.pages]
    except Exception as e:
        raise ExtractionError(f"Failed to extract text from PDF: {e}") from e
    return "\n\n".join(p for p in parts if p).strip()


def extract_text_from_docx(data: bytes) -> str:
    try:
        doc = Document(BytesIO(data))
    except Exception as e:
        raise ExtractionError(f"Failed to extract text from DOCX: {e}") from e

    parts = [p.text.strip() for p in doc.paragraphs if p.text and p.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            cells = [c.text.strip() for c in row.cells if c.text and c.text.strip()]
            if cells:
                parts.append(" | ".join(cells))
    return "\n".join(parts).strip()


class JaidedOCRClient:
    """jaided.ai OCR: ``{status: "success", result: [{ind, text, score}, ...]}``"""

    def __init__(self, url: str, username: str, api_key: str,
                 session: Optional[requests.Session] = None, timeout: float = 60):
        self.url = url
        self.username = username
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    def extract(self, path: str) -> str:
        if not self.api_key:
            raise ExtractionError("OCR_API_KEY is not set")
        try:
            with open(path, "rb") as fh:
                resp = self.session.post(
                    self.url,
                    files={"file": (Path(path).name, fh)},
                    headers={"username": self.username, "apikey": self.api_key},
                    timeout=self.timeout,
                )
            resp.raise_for_status()
            data = resp.json()
        except (OSError, requests.RequestException, ValueError) as e:
            raise ExtractionError(f"Failed to extract text from image: {e}") from e

        return self.parse(data)

    @staticmethod
    def parse(data) -> str:
        if isinstance(data, dict) and data.get("status") == "success" and isinstance(data.get("result"), list):
            items = sorted(data["result"], key=lambda it: it.get("ind", 0))
            text = " ".join(
                str(it.get("text", "")) for it in items if float(it.get("score", 0)) > OCR_MIN_SCORE
            ).strip()
            if not text:
                raise ExtractionError("No text extracted with sufficient confidence")
            return text

        # older response shapes
        if isinstance(data, dict) and data.get("text"):
            return str(data["text"]).strip()
        if isinstance(data, str) and data.strip():
            return data.strip()

        raise ExtractionError("OCR API returned unexpected format")


class TextExtractor:
    """Stage-1 extraction for documents and images; ``ocr`` handles images."""

    def __init__(self, ocr: Optional[JaidedOCRClient] = None):
        self.ocr = ocr

    def extract(self, path: str) -> str:
        ext = Path(path).suffix.lower()

        if ext in IMAGE_EXTS:
            if self.ocr is None:
                raise ExtractionError("No OCR service configured for images")
            text = self.ocr.extract(path)
        else:
            try:
                data = Path(path).read_bytes()
            except OSError as e:
                raise ExtractionError(f"Cannot read artifact: {e}") from e

            if ext in PDF_EXTS:
                text = extract_text_from_pdf(data)
            elif ext in DOCX_EXTS:
                text = extract_text_from_docx(data)
            elif ext in TEXT_EXTS:
                text = data.decode("utf-8", errors="replace").strip()
            else:
                raise ExtractionError(f"Unsupported file format: {ext or 'unknown'}")

        if not text:
            raise ExtractionError("No text could be extracted from the document")

        logger.info("extracted %d chars from %s", len(text), Path(path).name)
        return text
