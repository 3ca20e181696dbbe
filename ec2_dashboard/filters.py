from typing import Iterable, List

from .schemas import CostRecord, Dimension, FilterSpec


def matches(record: CostRecord, spec: FilterSpec) -> bool:
    # ISO dates order correctly as plain strings
    if spec.start_date and record.date < spec.start_date:
        return False
    if spec.end_date and record.date > spec.end_date:
        return False
    for dimension in Dimension:
        wanted = spec.value_for(dimension)
        if wanted and record.value_of(dimension) != wanted:
            return False
    return True


def apply_filter(records: Iterable[CostRecord], spec: FilterSpec) -> List[CostRecord]:
    return [r for r in records if matches(r, spec)]
