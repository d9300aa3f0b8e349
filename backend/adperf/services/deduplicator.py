"""
Natural-key identity of performance rows and incremental-import filtering.
"""
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, NamedTuple, Optional, Set

from adperf.errors import StoreUnavailableError
from adperf.schemas.performance import PerformanceRecord

if TYPE_CHECKING:
    from adperf.services.performance_store import PerformanceStore

logger = logging.getLogger(__name__)


class NaturalKey(NamedTuple):
    ad_id: str
    day: str
    placement: str
    platform: str


def natural_key(record: PerformanceRecord) -> NaturalKey:
    return NaturalKey(record.ad_id, record.day, record.placement, record.platform)


def compute_incremental(
    candidates: Iterable[PerformanceRecord],
    existing_keys: Set[NaturalKey],
) -> List[PerformanceRecord]:
    """Candidates whose natural key is not in existing_keys, in input order."""
    return [record for record in candidates if natural_key(record) not in existing_keys]


def collapse_duplicates(records: Iterable[PerformanceRecord]) -> List[PerformanceRecord]:
    """
    Keep one record per natural key.

    The last arrival wins, placed where the key first appeared.
    """
    by_key: dict[NaturalKey, PerformanceRecord] = {}
    for record in records:
        by_key[natural_key(record)] = record
    return list(by_key.values())


@dataclass
class IncrementalResult:
    records: List[PerformanceRecord]
    skipped: int = 0
    warning: Optional[str] = None


async def filter_new_records(
    candidates: List[PerformanceRecord],
    store: "PerformanceStore",
) -> IncrementalResult:
    """
    Drop candidates that are already persisted.

    If the store cannot be asked, every candidate is returned and the failure
    is reported as a warning: a redundant upsert is harmless, a skipped row is not.
    """
    if not candidates:
        return IncrementalResult(records=[])

    try:
        stored = await store.count()
        if stored == 0:
            logger.info("Store is empty, all %s records are new", len(candidates))
            return IncrementalResult(records=list(candidates))

        existing = await store.existing_keys()
    except StoreUnavailableError as e:
        logger.warning("Could not check existing records, importing all %s: %s", len(candidates), e)
        return IncrementalResult(
            records=list(candidates),
            warning=f"Existing-record check failed, all rows were treated as new: {e}",
        )

    new_records = compute_incremental(candidates, existing)
    logger.info(
        "Incremental filtering: %s candidates, %s stored keys, %s new",
        len(candidates),
        len(existing),
        len(new_records),
    )
    return IncrementalResult(records=new_records, skipped=len(candidates) - len(new_records))
