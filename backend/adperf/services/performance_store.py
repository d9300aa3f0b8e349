"""
Persistence gateway for ad performance rows.

Rows are keyed on (ad_id, day, placement, platform). Writes are upserts, so
re-importing the same export is idempotent and a later export of the same key
overwrites the earlier one. Reads page through results until a short page so
callers always see every row, never just the first page.
"""
import asyncio
import logging
import uuid
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

from sqlalchemy import distinct, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from adperf.errors import StoreUnavailableError
from adperf.models.ad_performance import AdPerformanceRecord, NATURAL_KEY_COLUMNS
from adperf.schemas.performance import (
    DateRange,
    PerformanceRecord,
    StoreSummary,
    UpsertResult,
)
from adperf.services.deduplicator import NaturalKey, collapse_duplicates
from adperf.services.pagination import PageStream

logger = logging.getLogger(__name__)


def _dialect_insert(session: Session):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise StoreUnavailableError(f"Upsert is not supported on the {dialect} dialect")
    return insert


def _to_row(record: PerformanceRecord) -> Dict[str, Any]:
    row = record.model_dump()
    row["id"] = uuid.uuid4()
    return row


def _rejection_reason(index: int, record: PerformanceRecord) -> Optional[str]:
    missing = [name for name in ("ad_id", "day") if not getattr(record, name)]
    if not missing:
        return None
    return f"record {index} (campaign {record.campaign_id or '?'}): missing {', '.join(missing)}"


class PerformanceStore:
    """
    Async facade over a SQLAlchemy session factory.

    Each call opens its own session on a worker thread and is awaited by the
    caller before the next one is issued.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        page_size: int = 1000,
        write_chunk_size: int = 500,
    ):
        if page_size <= 0 or write_chunk_size <= 0:
            raise ValueError("page_size and write_chunk_size must be positive")
        self.session_factory = session_factory
        self.page_size = page_size
        self.write_chunk_size = write_chunk_size

    async def _run(self, operation: str, fn: Callable[[Session], Any]) -> Any:
        def work():
            session = self.session_factory()
            try:
                return fn(session)
            except SQLAlchemyError:
                session.rollback()
                raise
            finally:
                session.close()

        try:
            return await asyncio.to_thread(work)
        except SQLAlchemyError as e:
            logger.error("Performance store %s failed: %s", operation, e)
            raise StoreUnavailableError(f"Performance store {operation} failed: {e}", cause=e) from e

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert(self, records: Sequence[PerformanceRecord]) -> UpsertResult:
        """
        Insert or overwrite records by natural key in a single transaction.

        Records missing ad_id or day are rejected individually and listed in
        the result. A database failure rolls back the whole batch and raises
        StoreUnavailableError.
        """
        if not records:
            return UpsertResult()

        errors: List[str] = []
        valid: List[PerformanceRecord] = []
        for index, record in enumerate(records):
            reason = _rejection_reason(index, record)
            if reason:
                errors.append(reason)
            else:
                valid.append(record)

        rows = [_to_row(r) for r in collapse_duplicates(valid)]
        if errors:
            logger.warning("Rejected %s of %s records before upsert", len(errors), len(records))

        if not rows:
            return UpsertResult(written=0, rejected=len(errors), errors=errors)

        chunk_size = self.write_chunk_size

        def write(session: Session) -> int:
            insert = _dialect_insert(session)
            table = AdPerformanceRecord.__table__
            stmt = insert(table)
            update_columns = {
                name: stmt.excluded[name]
                for name in PerformanceRecord.model_fields
                if name not in NATURAL_KEY_COLUMNS
            }
            update_columns["updated_at"] = func.now()
            stmt = stmt.on_conflict_do_update(
                index_elements=list(NATURAL_KEY_COLUMNS),
                set_=update_columns,
            )

            with session.begin():
                for start in range(0, len(rows), chunk_size):
                    session.execute(stmt, rows[start:start + chunk_size])
            return len(rows)

        written = await self._run("upsert", write)
        logger.info("Upserted %s rows (%s rejected)", written, len(errors))
        return UpsertResult(written=written, rejected=len(errors), errors=errors)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _range_query(
        self,
        start_date: Optional[str],
        end_date: Optional[str],
        campaign_ids: Optional[Sequence[str]],
    ):
        query = select(AdPerformanceRecord)
        if start_date:
            query = query.where(AdPerformanceRecord.day >= start_date)
        if end_date:
            query = query.where(AdPerformanceRecord.day <= end_date)
        if campaign_ids:
            query = query.where(AdPerformanceRecord.campaign_id.in_(list(campaign_ids)))
        return query.order_by(AdPerformanceRecord.day.desc(), AdPerformanceRecord.id)

    def iter_pages(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        campaign_ids: Optional[Sequence[str]] = None,
    ) -> PageStream[PerformanceRecord]:
        """Lazy page sequence over a range. Iterating it again re-runs the query from the start."""
        query = self._range_query(start_date, end_date, campaign_ids)

        async def fetch_page(offset: int, limit: int) -> List[PerformanceRecord]:
            def read(session: Session) -> List[PerformanceRecord]:
                rows = session.execute(query.offset(offset).limit(limit)).scalars().all()
                return [PerformanceRecord.model_validate(row) for row in rows]

            return await self._run("read", read)

        return PageStream(fetch_page, self.page_size)

    async def read_range(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        campaign_ids: Optional[Sequence[str]] = None,
    ) -> List[PerformanceRecord]:
        records = await self.iter_pages(start_date, end_date, campaign_ids).collect()
        logger.info(
            "Read %s rows (start=%s, end=%s, campaigns=%s)",
            len(records),
            start_date,
            end_date,
            len(campaign_ids) if campaign_ids else "all",
        )
        return records

    async def count(self) -> int:
        def read(session: Session) -> int:
            return session.execute(select(func.count()).select_from(AdPerformanceRecord)).scalar_one()

        return await self._run("count", read)

    async def existing_keys(self) -> Set[NaturalKey]:
        """Natural keys of every stored row, read page by page."""
        columns = [getattr(AdPerformanceRecord, name) for name in NATURAL_KEY_COLUMNS]
        query = select(*columns).order_by(AdPerformanceRecord.id)

        async def fetch_page(offset: int, limit: int) -> List[NaturalKey]:
            def read(session: Session) -> List[NaturalKey]:
                rows = session.execute(query.offset(offset).limit(limit)).all()
                return [NaturalKey(*(value or "" for value in row)) for row in rows]

            return await self._run("key lookup", read)

        keys = set(await PageStream(fetch_page, self.page_size).collect())
        logger.debug("Loaded %s existing natural keys", len(keys))
        return keys

    async def available_dates(self) -> List[str]:
        """Distinct days with data, most recent first."""
        def read(session: Session) -> List[str]:
            query = (
                select(distinct(AdPerformanceRecord.day))
                .where(AdPerformanceRecord.day != "")
                .order_by(AdPerformanceRecord.day.desc())
            )
            return list(session.execute(query).scalars().all())

        return await self._run("date lookup", read)

    async def summarize(self) -> StoreSummary:
        """Row count, covered days and distinct entity counts of everything stored."""
        def read(session: Session) -> StoreSummary:
            earliest, latest = session.execute(
                select(
                    func.min(AdPerformanceRecord.day),
                    func.max(AdPerformanceRecord.day),
                ).where(AdPerformanceRecord.day != "")
            ).one()
            total, campaigns, ad_sets, ads = session.execute(
                select(
                    func.count(AdPerformanceRecord.id),
                    func.count(distinct(AdPerformanceRecord.campaign_id)),
                    func.count(distinct(AdPerformanceRecord.ad_set_id)),
                    func.count(distinct(AdPerformanceRecord.ad_id)),
                )
            ).one()

            date_range = DateRange(start=earliest, end=latest) if earliest and latest else None
            return StoreSummary(
                total_records=total,
                date_range=date_range,
                campaign_count=campaigns,
                ad_set_count=ad_sets,
                ad_count=ads,
            )

        return await self._run("summary", read)
