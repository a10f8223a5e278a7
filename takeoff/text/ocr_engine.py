"""
OCR Engine Module

Adapters that turn a drawing page into OCRToken lists. Tesseract is the
primary engine; PaddleOCR is used when installed; vector PDFs can supply
their embedded text directly. The recognition engine itself is a black
box: everything downstream depends only on the OCRToken shape.
"""

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np
import pymupdf
import pytesseract
from PIL import Image

from ..constants import (
    OCR_MIN_CONFIDENCE,
    DEFAULT_OCR_LANG,
    DEFAULT_RENDER_DPI,
    PDF_POINTS_PER_INCH,
)

logger = logging.getLogger(__name__)

# PaddleOCR is an optional extra
PADDLE_AVAILABLE = False

try:
    from paddleocr import PaddleOCR
    PADDLE_AVAILABLE = True
except ImportError:
    logger.debug("PaddleOCR not available")


ImageInput = Union[str, Path, Image.Image, np.ndarray]


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in pixel space (origin top-left)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self):
        return (self.x + self.width / 2, self.y + self.height / 2)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_corners(cls, x0: float, y0: float, x1: float, y1: float) -> "BoundingBox":
        return cls(x=min(x0, x1), y=min(y0, y1), width=abs(x1 - x0), height=abs(y1 - y0))


@dataclass(frozen=True)
class OCRToken:
    """
    A recognized word with its confidence (0-100) and location.

    type is None until the token has been classified.
    """
    id: str
    text: str
    confidence: float
    bounding_box: BoundingBox
    page_number: int = 1
    type: Optional[str] = None

    def with_type(self, token_type: str) -> "OCRToken":
        return replace(self, type=token_type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "confidence": self.confidence,
            "bounding_box": self.bounding_box.to_dict(),
            "page_number": self.page_number,
            "type": self.type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OCRToken":
        box = data.get("bounding_box") or data.get("boundingBox") or {}
        return cls(
            id=str(data["id"]),
            text=str(data.get("text", "")),
            confidence=float(data.get("confidence", 0.0)),
            bounding_box=BoundingBox(
                x=float(box.get("x", 0.0)),
                y=float(box.get("y", 0.0)),
                width=float(box.get("width", 0.0)),
                height=float(box.get("height", 0.0)),
            ),
            page_number=int(data.get("page_number", data.get("pageNumber", 1))),
            type=data.get("type"),
        )


def get_available_engines() -> List[str]:
    """Return list of available OCR engines."""
    engines = ["tesseract"]
    if PADDLE_AVAILABLE:
        engines.append("paddleocr")
    return engines


def filter_by_confidence(
    tokens: Iterable[OCRToken],
    min_confidence: float = OCR_MIN_CONFIDENCE
) -> List[OCRToken]:
    """
    Drop tokens below the minimum confidence or with blank text.

    Applied upstream of classification; the classifier itself ignores
    confidence.
    """
    return [
        token for token in tokens
        if token.confidence >= min_confidence and token.text.strip()
    ]


def load_image(image: ImageInput) -> Image.Image:
    """Open an image path, or wrap a numpy array, as an RGB PIL image."""
    if isinstance(image, Image.Image):
        pil_image = image
    elif isinstance(image, np.ndarray):
        pil_image = Image.fromarray(image)
    else:
        pil_image = Image.open(image)

    if pil_image.mode not in ("RGB", "L"):
        pil_image = pil_image.convert("RGB")
    return pil_image


def run_tesseract(
    image: ImageInput,
    page_number: int = 1,
    lang: str = DEFAULT_OCR_LANG,
    min_confidence: float = OCR_MIN_CONFIDENCE
) -> List[OCRToken]:
    """
    Run Tesseract OCR on a page image.

    Args:
        image: Image path, PIL image or numpy array
        page_number: Page number to stamp on the tokens
        lang: Tesseract language code(s)
        min_confidence: Tokens below this confidence (0-100) are dropped

    Returns:
        List of unclassified OCRToken objects
    """
    tokens = []

    try:
        data = pytesseract.image_to_data(
            load_image(image),
            lang=lang,
            output_type=pytesseract.Output.DICT
        )
    except (pytesseract.TesseractError, OSError, RuntimeError) as e:
        logger.error(f"Tesseract error: {e}")
        return []

    n_boxes = len(data["text"])
    for i in range(n_boxes):
        text = str(data["text"][i]).strip()
        if not text:
            continue

        try:
            conf = float(data["conf"][i])
        except (TypeError, ValueError):
            conf = -1.0
        if conf < 0:  # No confidence available
            continue

        tokens.append(OCRToken(
            id=f"ocr_{page_number}_{i}",
            text=text,
            confidence=conf,
            bounding_box=BoundingBox(
                x=float(data["left"][i]),
                y=float(data["top"][i]),
                width=float(data["width"][i]),
                height=float(data["height"][i]),
            ),
            page_number=page_number,
        ))

    tokens = filter_by_confidence(tokens, min_confidence)
    logger.debug(f"Tesseract extracted {len(tokens)} tokens on page {page_number}")
    return tokens


def run_paddleocr(
    image: ImageInput,
    page_number: int = 1,
    lang: str = "fr",
    min_confidence: float = OCR_MIN_CONFIDENCE
) -> List[OCRToken]:
    """
    Run PaddleOCR on a page image.

    PaddleOCR reports scores in 0-1; they are rescaled to 0-100.

    Args:
        image: Image path, PIL image or numpy array
        page_number: Page number to stamp on the tokens
        lang: PaddleOCR language code
        min_confidence: Tokens below this confidence (0-100) are dropped

    Returns:
        List of unclassified OCRToken objects
    """
    if not PADDLE_AVAILABLE:
        logger.warning("PaddleOCR not available")
        return []

    tokens = []
    array = np.asarray(load_image(image).convert("RGB"))

    try:
        ocr = PaddleOCR(
            lang=lang,
            use_doc_orientation_classify=False,
            use_doc_unwarping=False,
            use_textline_orientation=False,
        )
        results = ocr.predict(array)
    except (RuntimeError, ValueError, OSError) as e:
        logger.error(f"PaddleOCR error: {e}")
        return []

    index = 0
    for result in results or []:
        texts = result["rec_texts"]
        scores = result["rec_scores"]
        polys = result["rec_polys"]

        for text, score, poly in zip(texts, scores, polys):
            xs = [p[0] for p in poly]
            ys = [p[1] for p in poly]
            tokens.append(OCRToken(
                id=f"ocr_{page_number}_{index}",
                text=str(text).strip(),
                confidence=float(score) * 100,
                bounding_box=BoundingBox.from_corners(min(xs), min(ys), max(xs), max(ys)),
                page_number=page_number,
            ))
            index += 1

    tokens = filter_by_confidence(tokens, min_confidence)
    logger.debug(f"PaddleOCR extracted {len(tokens)} tokens on page {page_number}")
    return tokens


def run_ocr(
    image: ImageInput,
    page_number: int = 1,
    engine: str = "tesseract",
    lang: Optional[str] = None,
    min_confidence: float = OCR_MIN_CONFIDENCE
) -> List[OCRToken]:
    """
    Run OCR on an image using specified engine.

    Args:
        image: Image path, PIL image or numpy array
        page_number: Page number to stamp on the tokens
        engine: "tesseract" or "paddleocr"
        lang: Language code (engine default if None)
        min_confidence: Tokens below this confidence (0-100) are dropped

    Returns:
        List of unclassified OCRToken objects
    """
    if engine == "paddleocr" and PADDLE_AVAILABLE:
        return run_paddleocr(image, page_number, lang or "fr", min_confidence)
    elif engine == "paddleocr":
        logger.info("PaddleOCR not available, using Tesseract")

    return run_tesseract(image, page_number, lang or DEFAULT_OCR_LANG, min_confidence)


# =============================================================================
# PDF PAGES
# =============================================================================

def render_page_image(page: pymupdf.Page, dpi: int = DEFAULT_RENDER_DPI) -> Image.Image:
    """Render a PDF page to an RGB PIL image at the given DPI."""
    pix = page.get_pixmap(dpi=dpi, alpha=False)
    return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)


def extract_embedded_tokens(
    page: pymupdf.Page,
    page_number: int = 1,
    dpi: int = DEFAULT_RENDER_DPI
) -> List[OCRToken]:
    """
    Extract embedded text spans from a vector PDF page as tokens.

    Span boxes are mapped from PDF points to the pixel space of a render
    at the given DPI, so they line up with measurements drawn on that
    render. Embedded text has confidence 100.

    Args:
        page: pymupdf.Page object
        page_number: Page number to stamp on the tokens
        dpi: Render DPI defining the pixel space

    Returns:
        List of unclassified OCRToken objects
    """
    tokens = []
    zoom = dpi / PDF_POINTS_PER_INCH

    text_dict = page.get_text("dict", flags=pymupdf.TEXT_PRESERVE_WHITESPACE)

    index = 0
    for block in text_dict.get("blocks", []):
        if block.get("type") != 0:  # Type 0 is text
            continue

        for line in block.get("lines", []):
            for span in line.get("spans", []):
                text = span.get("text", "").strip()
                bbox = span.get("bbox")
                if not text or not bbox:
                    continue

                x0, y0, x1, y1 = (v * zoom for v in bbox)
                tokens.append(OCRToken(
                    id=f"pdf_{page_number}_{index}",
                    text=text,
                    confidence=100.0,
                    bounding_box=BoundingBox.from_corners(x0, y0, x1, y1),
                    page_number=page_number,
                ))
                index += 1

    logger.debug(f"Extracted {len(tokens)} embedded text tokens on page {page_number}")
    return tokens


def extract_pdf_page_tokens(
    pdf_path: str,
    page_number: int = 1,
    engine: str = "embedded",
    dpi: int = DEFAULT_RENDER_DPI,
    lang: Optional[str] = None,
    min_confidence: float = OCR_MIN_CONFIDENCE
) -> List[OCRToken]:
    """
    Extract tokens from one page (1-indexed) of a PDF file.

    engine "embedded" reads the PDF's text layer; any other engine renders
    the page at dpi and runs OCR on it.

    Raises:
        ValueError: If the page number is out of range
    """
    with pymupdf.open(pdf_path) as doc:
        if page_number < 1 or page_number > doc.page_count:
            raise ValueError(
                f"Invalid page number: {page_number}. "
                f"Document has {doc.page_count} pages."
            )
        page = doc[page_number - 1]

        if engine == "embedded":
            return extract_embedded_tokens(page, page_number, dpi)

        image = render_page_image(page, dpi)

    return run_ocr(image, page_number, engine, lang, min_confidence)
