"""
Dimension Classifier Module

Classifies OCR tokens as scale annotations, dimensions, bare numbers or
plain text, and normalizes detected dimensions to meters.

Classification is best-effort: nothing here raises on malformed input,
so one bad token never halts a batch OCR pass.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..calibration.scale_calibrator import ScaleSpec, scale_from_ratio
from ..calibration.unit_converter import feet_inches_to_meters, to_meters
from ..constants import INCHES_PER_FOOT, TokenType, UnitSystem
from .ocr_engine import OCRToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DimensionValue:
    """A dimension parsed from text, normalized to meters."""
    value_meters: float
    source_unit: str  # "m", "cm", "mm", "ft", "in" or "ft-in"


@dataclass(frozen=True)
class ScaleSuggestion:
    """A scale annotation found on the drawing, pending user confirmation."""
    token: OCRToken
    ratio: float
    scale: ScaleSpec


@dataclass(frozen=True)
class DimensionSuggestion:
    """A dimension found on the drawing, pending user confirmation."""
    token: OCRToken
    dimension: DimensionValue


# =============================================================================
# PATTERNS
# =============================================================================

# A number that is not the tail of a longer number ("2.3" in "1.2.3")
_NUMBER = r"(?<![\d.,])(\d+(?:[.,]\d+)?)(?![.,]?\d)"

# Scale ratio: 1:50, 1/100, ÉCHELLE 1:100, Scale = 1/200, Éch. 1:20
# Bare ratios must not be clock times (11:30, 1:30 PM), dates (1/15/2024)
# or inch fractions (1/4", 6 1/2 po)
SCALE_PREFIXED_PATTERN = re.compile(
    r"(?:[ée]chelle|scale|[ée]ch\.?)\s*[:=]?\s*1\s*[:/]\s*(\d+(?:[.,]\d+)?)",
    re.IGNORECASE
)
SCALE_RATIO_PATTERN = re.compile(
    r"(?<![\d.,/])1\s*[:/]\s*(\d+(?:[.,]\d+)?)(?![\d.,:/])(?!\s*[AP]M\b)"
    r"(?!\s*(?:[\"″'′]|po\b|in\b|pouces?\b|inch))",
    re.IGNORECASE
)

# Architectural scale: 1/4" = 1'-0", 1" = 10'
SCALE_ARCHITECTURAL_PATTERN = re.compile(
    r"(?<![\d/])(\d+)(?:/(\d+))?\s*[\"″]\s*=\s*(\d+)\s*['′](?:\s*-?\s*0\s*[\"″]?)?"
)

# Combined feet-inches: 4'-6", 12' 6", 12'6 1/2"
FEET_INCHES_PATTERN = re.compile(
    r"(?<![\d.,])(\d+)\s*['′]\s*-?\s*(\d+(?:\.\d+)?)(?:\s+(\d+)/(\d+))?\s*[\"″]?"
)

# Single-unit dimensions, most specific unit first; m² and m³ are not lengths
UNIT_PATTERNS = [
    ("mm", re.compile(_NUMBER + r"\s*(?:mm|millim[èe]tres?|millimeters?)(?![a-zA-Z²³])", re.IGNORECASE)),
    ("cm", re.compile(_NUMBER + r"\s*(?:cm|centim[èe]tres?|centimeters?)(?![a-zA-Z²³])", re.IGNORECASE)),
    ("m", re.compile(_NUMBER + r"\s*(?:m|m[èe]tres?|meters?)(?![a-zA-Z²³])", re.IGNORECASE)),
    ("ft", re.compile(_NUMBER + r"\s*(?:['′]|pi|ft|pieds?|feet|foot)(?![a-zA-Z²³])", re.IGNORECASE)),
    ("in", re.compile(_NUMBER + r"\s*(?:[\"″]|po|in|pouces?|inch(?:es)?)(?![a-zA-Z²³])", re.IGNORECASE)),
]

# Bare integer or decimal, nothing else
NUMBER_PATTERN = re.compile(r"^\d+[.,]?\d*$")


def _parse_number(text: str) -> Optional[float]:
    """Parse "12,5" or "12.5"; None if not a finite number."""
    try:
        value = float(text.replace(",", "."))
    except (AttributeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return value


# =============================================================================
# SCALE TEXT
# =============================================================================

def extract_scale_ratio(text: str) -> Optional[float]:
    """
    Extract the drawing ratio N from a scale annotation.

    Examples:
        "1:50" -> 50
        "ÉCHELLE 1/100" -> 100
        '1/4" = 1\'-0"' -> 48

    Args:
        text: Token text

    Returns:
        Ratio, or None if the text holds no scale annotation
    """
    if not text:
        return None

    match = SCALE_PREFIXED_PATTERN.search(text) or SCALE_RATIO_PATTERN.search(text)
    if match:
        ratio = _parse_number(match.group(1))
        if ratio is not None and ratio > 0:
            return ratio

    match = SCALE_ARCHITECTURAL_PATTERN.search(text)
    if match:
        numerator = int(match.group(1))
        denominator = int(match.group(2)) if match.group(2) else 1
        feet = int(match.group(3))
        if numerator > 0 and denominator > 0 and feet > 0:
            paper_inches = numerator / denominator
            return feet * INCHES_PER_FOOT / paper_inches

    return None


def _is_scale(text: str) -> bool:
    return extract_scale_ratio(text) is not None


# =============================================================================
# DIMENSION TEXT
# =============================================================================

def extract_dimension(
    text: str,
    assume_unit: Optional[str] = None
) -> Optional[DimensionValue]:
    """
    Extract a dimension from text and normalize it to meters.

    Combined feet-inches is tried first, then mm, cm, m, feet and inches.
    Bare numbers carry no unit and return None unless assume_unit is given
    (architectural plans usually dimension in millimeters).

    Args:
        text: Token text
        assume_unit: Unit for bare numbers, e.g. "mm"

    Returns:
        DimensionValue, or None if no dimension can be parsed
    """
    if not text:
        return None

    match = FEET_INCHES_PATTERN.search(text)
    if match:
        feet = _parse_number(match.group(1))
        inches = _parse_number(match.group(2))
        if feet is not None and inches is not None:
            if match.group(3) and match.group(4) and int(match.group(4)) > 0:
                inches += int(match.group(3)) / int(match.group(4))
            return DimensionValue(feet_inches_to_meters(feet, inches), "ft-in")

    for unit, pattern in UNIT_PATTERNS:
        match = pattern.search(text)
        if match:
            value = _parse_number(match.group(1))
            if value is None:
                return None
            return DimensionValue(to_meters(value, unit), unit)

    if assume_unit and NUMBER_PATTERN.match(text.strip()):
        value = _parse_number(text.strip().rstrip(".,"))
        if value is not None:
            try:
                return DimensionValue(to_meters(value, assume_unit), assume_unit)
            except ValueError as e:
                logger.debug(f"Cannot apply assumed unit: {e}")

    return None


def _is_dimension(text: str) -> bool:
    if FEET_INCHES_PATTERN.search(text):
        return True
    return any(pattern.search(text) for _, pattern in UNIT_PATTERNS)


# =============================================================================
# CLASSIFICATION
# =============================================================================

def classify(text: str) -> str:
    """
    Classify token text. First match wins:
    scale annotation, dimension with unit, bare number, text.

    Args:
        text: Token text

    Returns:
        One of TokenType.SCALE, DIMENSION, NUMBER, TEXT
    """
    if not text or not isinstance(text, str):
        return TokenType.TEXT

    if _is_scale(text):
        return TokenType.SCALE
    if _is_dimension(text):
        return TokenType.DIMENSION
    if NUMBER_PATTERN.match(text.strip()):
        return TokenType.NUMBER
    return TokenType.TEXT


def classify_tokens(tokens: Iterable[OCRToken]) -> List[OCRToken]:
    """
    Classify a batch of tokens.

    Returns:
        New tokens with type set, in input order
    """
    classified = []
    for token in tokens:
        token_type = classify(token.text)
        logger.debug(f"Token {token.id} {token.text!r} -> {token_type}")
        classified.append(token.with_type(token_type))
    return classified


def suggest_scales(
    tokens: Iterable[OCRToken],
    unit_system: str = UnitSystem.METRIC
) -> List[ScaleSuggestion]:
    """
    Scale suggestions from classified (or raw) tokens, highest confidence first.
    """
    suggestions = []
    for token in tokens:
        if token.type not in (None, TokenType.SCALE):
            continue
        ratio = extract_scale_ratio(token.text)
        if ratio is None:
            continue
        system = unit_system
        if SCALE_ARCHITECTURAL_PATTERN.search(token.text):
            system = UnitSystem.IMPERIAL
        suggestions.append(ScaleSuggestion(
            token=token,
            ratio=ratio,
            scale=scale_from_ratio(ratio, system),
        ))

    suggestions.sort(key=lambda s: s.token.confidence, reverse=True)
    return suggestions


def suggest_dimensions(
    tokens: Iterable[OCRToken],
    assume_unit: Optional[str] = None
) -> List[DimensionSuggestion]:
    """
    Dimension suggestions from classified (or raw) tokens.

    Bare numbers are included only when assume_unit is given.
    """
    accepted = {None, TokenType.DIMENSION}
    if assume_unit:
        accepted.add(TokenType.NUMBER)

    suggestions = []
    for token in tokens:
        if token.type not in accepted:
            continue
        if token.type is None and classify(token.text) == TokenType.SCALE:
            continue
        dimension = extract_dimension(token.text, assume_unit=assume_unit)
        if dimension is not None:
            suggestions.append(DimensionSuggestion(token=token, dimension=dimension))

    return suggestions
