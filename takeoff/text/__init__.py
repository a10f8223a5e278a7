# OCR token extraction and classification module

from .ocr_engine import (
    BoundingBox,
    OCRToken,
    PADDLE_AVAILABLE,
    get_available_engines,
    filter_by_confidence,
    load_image,
    run_tesseract,
    run_paddleocr,
    run_ocr,
    render_page_image,
    extract_embedded_tokens,
    extract_pdf_page_tokens,
)

from .dimension_classifier import (
    DimensionValue,
    ScaleSuggestion,
    DimensionSuggestion,
    classify,
    classify_tokens,
    extract_dimension,
    extract_scale_ratio,
    suggest_scales,
    suggest_dimensions,
)

__all__ = [
    # OCR Engine
    "BoundingBox",
    "OCRToken",
    "PADDLE_AVAILABLE",
    "get_available_engines",
    "filter_by_confidence",
    "load_image",
    "run_tesseract",
    "run_paddleocr",
    "run_ocr",
    "render_page_image",
    "extract_embedded_tokens",
    "extract_pdf_page_tokens",
    # Dimension Classifier
    "DimensionValue",
    "ScaleSuggestion",
    "DimensionSuggestion",
    "classify",
    "classify_tokens",
    "extract_dimension",
    "extract_scale_ratio",
    "suggest_scales",
    "suggest_dimensions",
]
