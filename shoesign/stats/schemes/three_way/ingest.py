"""
shoesign.stats.schemes.three_way.ingest
=======================================

Turning upstream records into categories.

Upstream feeds deliver outcomes either as tag strings or as compact result
mappings. `classify_outcome` maps both onto `Category` and returns None for
anything it cannot classify; callers count and skip those.

Feed messages carry the full history of every table they mention:

    {"args": {"<table id>": {"results": [...]}, ...}}

`extract_table_reports` keeps the tables of interest (ids containing ``bac``)
whose `results` is a list.

Examples
--------
>>> classify_outcome("Banker"), classify_outcome("Player"), classify_outcome("B")
(<Category.B: 'B'>, <Category.P: 'P'>, <Category.B: 'B'>)
>>> classify_outcome({"c": "R"}), classify_outcome({"c": "B"}), classify_outcome({"ties": 1})
(<Category.B: 'B'>, <Category.P: 'P'>, <Category.T: 'T'>)
>>> classify_outcome({"c": "G"}) is None, classify_outcome(None) is None
(True, True)
>>> extract_table_reports({"args": {"BAC-7": {"results": ["B"]}, "rou-1": {"results": []}}})
{'BAC-7': ['B']}
"""

from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from shoesign.core.names import Category

logger = logging.getLogger(__name__)

TABLE_MARKER = "bac"

_NAMED_TAGS: Dict[str, Category] = {
    "Player": Category.P,
    "Banker": Category.B,
}


def classify_outcome(record: Any) -> Optional[Category]:
    """
    Map one upstream record to a category.

    Strings: "Player" -> P, "Banker" -> B, the letters B/P/T map to
    themselves, any other string is a tie. Mappings: truthy `ties` -> T,
    ``c == 'R'`` -> B, ``c == 'B'`` -> P. Everything else is unclassified.
    """
    if isinstance(record, Category):
        return record
    if isinstance(record, str):
        if record in _NAMED_TAGS:
            return _NAMED_TAGS[record]
        parsed = Category.parse(record)
        return parsed if parsed is not None else Category.T
    if isinstance(record, Mapping):
        if record.get("ties"):
            return Category.T
        colour = record.get("c")
        if colour == "R":
            return Category.B
        if colour == "B":
            return Category.P
        return None
    return None


def extract_table_reports(message: Any) -> Dict[str, List[Any]]:
    """Return {table_id: results} for every tracked table in a feed message."""
    if not isinstance(message, Mapping):
        return {}
    tables = message.get("args")
    if not isinstance(tables, Mapping):
        return {}

    reports: Dict[str, List[Any]] = {}
    for table_id, table in tables.items():
        if TABLE_MARKER not in str(table_id).lower():
            continue
        if not isinstance(table, Mapping):
            continue
        results = table.get("results")
        if isinstance(results, list):
            reports[str(table_id)] = results
    return reports


def parse_feed_message(text: str) -> Dict[str, List[Any]]:
    """Decode a raw feed message; undecodable text yields no reports."""
    try:
        message = json.loads(text)
    except (TypeError, ValueError) as exc:
        logger.warning("Discarding undecodable feed message: %s", exc)
        return {}
    reports = extract_table_reports(message)
    logger.debug("Feed message carried %d tracked table(s)", len(reports))
    return reports
