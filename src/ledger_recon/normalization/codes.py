"""
Invoice reference canonicalization and code similarity.

``clean_code`` turns the many ways a counterparty writes the same document
number ("INV-2024-0057", "inv 57", "0057/2024") into one join key, and
``similarity`` scores how close two such keys are.
"""

from functools import lru_cache
from typing import Iterable, Optional
import re

from rapidfuzz.distance import Levenshtein

from ..config import CodeCleaningConfig

DEFAULT_PREFIXES: tuple[str, ...] = tuple(CodeCleaningConfig().prefixes)

FALLBACK_CODE = "0"

_YEAR_RE = re.compile(r"20[0-9]{2}")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")
_LEADING_ZEROS_RE = re.compile(r"^0+")


@lru_cache(maxsize=32)
def _prefix_pattern(prefixes: tuple[str, ...]) -> Optional[re.Pattern]:
    if not prefixes:
        return None
    alternation = "|".join(re.escape(p.lower()) for p in prefixes)
    return re.compile(rf"^(?:{alternation})\W*")


def clean_code(raw: Optional[str], prefixes: Iterable[str] = DEFAULT_PREFIXES) -> str:
    """
    Canonicalize an invoice reference into a join key.

    Steps, in order: lowercase and trim; drop one leading document-type
    prefix (plus any separator after it); drop every 20xx year token; drop
    everything that is not ``a-z0-9``; drop leading zeros.

    Args:
        raw: Reference as written in the ledger
        prefixes: Prefix abbreviations to strip, tried in order

    Returns:
        The cleaned code, or ``"0"`` when nothing is left

    Examples:
        >>> clean_code("INV-2024-0057")
        '57'
        >>> clean_code("")
        '0'
    """
    if not raw:
        return FALLBACK_CODE

    s = str(raw).strip().lower()

    pattern = _prefix_pattern(tuple(prefixes))
    if pattern is not None:
        s = pattern.sub("", s, count=1)

    s = _YEAR_RE.sub("", s)
    s = _NON_ALNUM_RE.sub("", s)
    s = _LEADING_ZEROS_RE.sub("", s)

    return s or FALLBACK_CODE


def similarity(a: str, b: str) -> float:
    """
    Normalized edit-distance similarity in [0, 1].

    ``1 - levenshtein(a, b) / max(len(a), len(b))`` with unit costs for
    insertion, deletion and substitution; two empty strings score 1.0.
    """
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return 1.0 - (Levenshtein.distance(a, b) / max_len)
