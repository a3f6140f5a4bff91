"""
Review Record Normalisation
============================

Converts raw review rows (CSV / JSON / API payloads) into Review objects.

A row is skipped -- never fatal -- when:
    - its rating is missing, not a number, or outside 1-5
    - no product line can be resolved (no 'product' field and no 'handle')

Column names are matched case-insensitively; the body comes from "review"
or "body", the date from "date" or "created_at".

Rows with a missing body are kept with an empty body: they still count
toward totals, they simply match nothing.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .pattern_catalog import PatternCatalog, default_catalog
from .review_models import Review

logger = logging.getLogger(__name__)

BODY_FIELDS = ("review", "body")
DATE_FIELDS = ("date", "created_at")


@dataclass
class NormalizedRecords:
    """Reviews that passed normalisation plus what was dropped."""
    reviews: List[Review] = field(default_factory=list)
    skipped: int = 0
    skip_reasons: Dict[str, int] = field(default_factory=dict)

    @property
    def total_records(self) -> int:
        return len(self.reviews) + self.skipped


def parse_rating(value: Any) -> Optional[Union[int, float]]:
    """A 1-5 rating, int when integral, or None when unusable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return None
    if not 1 <= rating <= 5:
        return None
    return int(rating) if rating.is_integer() else rating


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def normalize_record(
    record: Mapping[str, Any],
    catalog: PatternCatalog,
) -> Union[Review, str]:
    """
    Normalise one row.

    Returns:
        A Review, or the skip reason as a string.
    """
    if not isinstance(record, Mapping):
        return "not_a_record"

    # export headers vary in case ("Handle", "Rating", ...)
    record = {str(key).strip().lower(): value for key, value in record.items()}

    raw_rating = record.get("rating")
    if raw_rating is None or (isinstance(raw_rating, str) and not raw_rating.strip()):
        return "missing_rating"
    rating = parse_rating(raw_rating)
    if rating is None:
        return "invalid_rating"

    handle = _text(record.get("handle")).strip()
    product = _text(record.get("product")).strip()
    if not product:
        if not handle:
            return "missing_product"
        product = catalog.categorize_product(handle)

    body = ""
    for key in BODY_FIELDS:
        if record.get(key):
            body = _text(record[key])
            break

    date = ""
    for key in DATE_FIELDS:
        if record.get(key):
            date = _text(record[key]).strip()
            break

    return Review(
        handle=handle,
        body=body,
        rating=rating,
        date=date,
        product=product,
    )


def normalize_records(
    records: Iterable[Mapping[str, Any]],
    catalog: Optional[PatternCatalog] = None,
) -> NormalizedRecords:
    """
    Normalise a batch of rows, skipping malformed ones.

    Args:
        records: Raw rows in corpus order.
        catalog: Supplies the handle -> product line rules.

    Returns:
        NormalizedRecords with usable reviews (input order kept) and skip counts.
    """
    catalog = catalog or default_catalog()
    result = NormalizedRecords()
    reasons: Counter = Counter()

    for record in records:
        outcome = normalize_record(record, catalog)
        if isinstance(outcome, Review):
            result.reviews.append(outcome)
        else:
            reasons[outcome] += 1

    result.skipped = sum(reasons.values())
    result.skip_reasons = dict(sorted(reasons.items()))

    if result.skipped:
        logger.warning(
            f"Skipped {result.skipped} malformed records out of {result.total_records}: "
            + ", ".join(f"{reason}={n}" for reason, n in result.skip_reasons.items())
        )

    return result
