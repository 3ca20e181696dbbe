import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Tuple

import httpx
from pydantic import ValidationError

from .schemas import CostRecord

LOG = logging.getLogger(__name__)


class InvalidDataStructure(ValueError):
    """The report document is not shaped as {"data": [record, ...]}."""


class InvalidRecord(ValueError):
    """A single raw row cannot become a CostRecord (missing or non-ISO date)."""


def normalize(raw: Mapping[str, Any]) -> CostRecord:
    """Copy a raw row into a CostRecord, coercing Cost_USD_Day to a float.

    Absent or unparseable costs become 0. The date must be ISO ``YYYY-MM-DD``
    because range filtering and axis ordering compare dates as strings.
    """
    try:
        return CostRecord.model_validate(dict(raw))
    except ValidationError as e:
        raise InvalidRecord(str(e)) from e


def parse_payload(document: Any) -> Tuple[List[CostRecord], int]:
    """Return (records, dropped_count) for a report document."""
    if not isinstance(document, Mapping):
        raise InvalidDataStructure("report document is not an object")
    rows = document.get("data")
    if not isinstance(rows, list):
        raise InvalidDataStructure("report document has no 'data' list")

    records: List[CostRecord] = []
    dropped = 0
    for i, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise InvalidDataStructure(f"row {i} is not an object")
        try:
            records.append(normalize(row))
        except InvalidRecord as e:
            dropped += 1
            LOG.debug(f"dropping row {i}: {e}")
    if dropped:
        LOG.warning(f"dropped {dropped} rows without a valid YYYY-MM-DD date")
    return records, dropped


def load_records(fetch: Callable[[], Dict[str, Any]]) -> Tuple[Tuple[CostRecord, ...], int]:
    """Fetch and parse the report. Any failure yields an empty dataset."""
    try:
        document = fetch()
        records, dropped = parse_payload(document)
    except httpx.HTTPError as e:
        LOG.error(f"failed to fetch report: {e}")
        return (), 0
    except json.JSONDecodeError as e:
        LOG.error(f"report is not valid JSON: {e}")
        return (), 0
    except UnicodeDecodeError as e:
        LOG.error(f"report is not valid UTF-8: {e}")
        return (), 0
    except OSError as e:
        LOG.error(f"failed to read report: {e}")
        return (), 0
    except InvalidDataStructure as e:
        LOG.error(f"invalid data structure: {e}")
        return (), 0
    LOG.info(f"loaded {len(records)} records")
    return tuple(records), dropped
