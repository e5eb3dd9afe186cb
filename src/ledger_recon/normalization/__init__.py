"""Row normalization and invoice code handling."""

from .codes import clean_code, similarity
from .normalizer import (
    ColumnMapping,
    Normalizer,
    classify,
    detect_columns,
    normalize_date,
    parse_amount,
    round2,
)

__all__ = [
    "clean_code",
    "similarity",
    "ColumnMapping",
    "Normalizer",
    "classify",
    "detect_columns",
    "normalize_date",
    "parse_amount",
    "round2",
]
