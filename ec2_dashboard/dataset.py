import logging
from typing import Callable, Dict, Any, Optional, Tuple

from .dimensions import build_catalog
from .fetchers.report_fetcher import fetch_all_records
from .ingest import load_records
from .metrics import record_load
from .schemas import CostRecord, DimensionCatalog

LOG = logging.getLogger(__name__)


class Dataset:
    """The session's records: fetched once, read-only afterwards."""

    def __init__(self, fetch: Callable[[], Dict[str, Any]] = fetch_all_records):
        self._fetch = fetch
        self._records: Tuple[CostRecord, ...] = ()
        self._catalog: Optional[DimensionCatalog] = None
        self.dropped = 0
        self.loading = True

    @property
    def records(self) -> Tuple[CostRecord, ...]:
        return self._records

    def load(self) -> "Dataset":
        if not self.loading:
            return self
        try:
            self._records, self.dropped = load_records(self._fetch)
        finally:
            # never leave the dashboard stuck on "loading"
            self.loading = False
            self._catalog = None
        record_load(len(self._records), self.dropped)
        return self

    def catalog(self, environment: Optional[str] = None) -> DimensionCatalog:
        if environment:
            return build_catalog(self._records, environment)
        if self._catalog is None:
            self._catalog = build_catalog(self._records)
        return self._catalog
