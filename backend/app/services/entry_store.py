"""
Entry Store

Transactional create/update/delete for weekly store entries.

Each write is one unit of work on the injected session: committed on
success, rolled back on any error. The unique constraint on
(store_code, fiscal_year, week_number) is the authoritative duplicate
guard; the read-before-insert check only produces a friendlier error in the
common case.
"""

from typing import Iterable, List, Optional, Tuple
from contextlib import contextmanager
import logging

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import DuplicateEntry, NotFound
from app.models.store import Store
from app.models.weekly_entry import WeeklyEntry
from app.schemas.weekly_entry import WeeklyEntryCreate, WeeklyEntryUpdate, LastWeekData
from app.services.access_scope import Principal, ensure_store_access
from app.services import fiscal_period
from app.services.metrics import calculate_entry_metrics, yoy_delta

logger = logging.getLogger(__name__)

RAW_FIELDS = (
    "total_sales",
    "num_transactions",
    "variable_hours",
    "average_wage",
    "total_fixed_cost",
    "notes",
)


class EntryStore:
    """Persistence service for WeeklyEntry rows."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _transaction(self):
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _get_store(self, store_code: str) -> Store:
        store = self.db.query(Store).filter(Store.code == store_code).first()
        if not store:
            raise NotFound(f"Store {store_code} not found", details={"store_code": store_code})
        return store

    def _find_entry(self, entry_id: int) -> WeeklyEntry:
        entry = self.db.query(WeeklyEntry).filter(WeeklyEntry.id == entry_id).first()
        if not entry:
            raise NotFound("Entry not found", details={"id": entry_id})
        return entry

    def _find_identity(self, store_code: str, fiscal_year: int, week_number: int) -> Optional[WeeklyEntry]:
        return self.db.query(WeeklyEntry).filter(
            WeeklyEntry.store_code == store_code,
            WeeklyEntry.fiscal_year == fiscal_year,
            WeeklyEntry.week_number == week_number,
        ).first()

    def _carry_forward_fixed_cost(self, store_code: str, fiscal_year: int, week_number: int) -> float:
        """Fixed cost of the store's most recent entry before the given week, else 0."""
        previous = self.db.query(WeeklyEntry.total_fixed_cost).filter(
            WeeklyEntry.store_code == store_code,
            or_(
                WeeklyEntry.fiscal_year < fiscal_year,
                and_(
                    WeeklyEntry.fiscal_year == fiscal_year,
                    WeeklyEntry.week_number < week_number,
                ),
            ),
        ).order_by(
            WeeklyEntry.fiscal_year.desc(),
            WeeklyEntry.week_number.desc(),
        ).first()

        if previous is None or previous[0] is None:
            return 0.0
        return previous[0]

    def _apply_prior_year(self, entry: WeeklyEntry) -> None:
        """Copy the same store's values from one fiscal year earlier, when present."""
        prior = self._find_identity(entry.store_code, entry.fiscal_year - 1, entry.week_number)
        if prior is None:
            return
        entry.total_sales_py = prior.total_sales
        entry.num_transactions_py = prior.num_transactions
        entry.variable_hours_py = prior.variable_hours
        entry.total_labor_cost_py = prior.total_labor_cost
        entry.total_labor_percent_py = prior.total_labor_percent

    def _apply_metrics(self, entry: WeeklyEntry) -> None:
        """Recompute every derived field from the entry's raw fields."""
        metrics = calculate_entry_metrics(
            total_sales=entry.total_sales,
            num_transactions=entry.num_transactions,
            variable_hours=entry.variable_hours,
            average_wage=entry.average_wage,
            total_fixed_cost=entry.total_fixed_cost,
        )
        for field, value in metrics.to_dict().items():
            setattr(entry, field, value)

        if entry.total_sales_py is not None:
            entry.delta_sales_percent = yoy_delta(entry.total_sales, entry.total_sales_py)
        if entry.variable_hours_py is not None:
            entry.delta_hours_percent = yoy_delta(entry.variable_hours, entry.variable_hours_py)
        if entry.total_labor_percent_py is not None:
            entry.delta_total_labor_percent = yoy_delta(entry.total_labor_percent, entry.total_labor_percent_py)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def get(self, entry_id: int, actor: Principal) -> WeeklyEntry:
        entry = self._find_entry(entry_id)
        ensure_store_access(actor, entry.store_code)
        return entry

    def create(self, data: WeeklyEntryCreate, actor: Principal) -> WeeklyEntry:
        """
        Insert a new weekly entry.

        Raises:
            Forbidden: actor may not write to the store
            NotFound: store does not exist
            DuplicateEntry: the store already has an entry for the week
        """
        ensure_store_access(actor, data.store_code)
        fiscal_period.validate_year_week(data.fiscal_year, data.week_number)

        try:
            with self._transaction():
                self._get_store(data.store_code)

                if self._find_identity(data.store_code, data.fiscal_year, data.week_number):
                    raise DuplicateEntry(details={
                        "store_code": data.store_code,
                        "fiscal_year": data.fiscal_year,
                        "week_number": data.week_number,
                    })

                total_fixed_cost = data.total_fixed_cost
                if total_fixed_cost is None:
                    total_fixed_cost = self._carry_forward_fixed_cost(
                        data.store_code, data.fiscal_year, data.week_number
                    )

                entry = WeeklyEntry(
                    store_code=data.store_code,
                    fiscal_year=data.fiscal_year,
                    week_number=data.week_number,
                    week_iso=fiscal_period.week_iso(data.fiscal_year, data.week_number),
                    week_ending=fiscal_period.week_ending_from_year_week(data.fiscal_year, data.week_number),
                    total_sales=data.total_sales,
                    num_transactions=data.num_transactions,
                    variable_hours=data.variable_hours,
                    average_wage=data.average_wage,
                    total_fixed_cost=total_fixed_cost,
                    notes=data.notes,
                    created_by=actor.id,
                )
                self._apply_prior_year(entry)
                self._apply_metrics(entry)

                self.db.add(entry)
                self.db.flush()
        except IntegrityError as exc:
            raise DuplicateEntry(details={
                "store_code": data.store_code,
                "fiscal_year": data.fiscal_year,
                "week_number": data.week_number,
            }) from exc

        self.db.refresh(entry)
        logger.info(f"Created weekly entry {entry.id} for store {entry.store_code}, week {entry.week_iso}")
        return entry

    def update(self, entry_id: int, changes: WeeklyEntryUpdate, actor: Principal) -> WeeklyEntry:
        """
        Apply raw-field changes and recompute derived fields.

        An explicit ``total_fixed_cost: null`` re-applies the carry-forward
        rule; other null numeric fields are ignored.
        """
        with self._transaction():
            entry = self._find_entry(entry_id)
            ensure_store_access(actor, entry.store_code)

            update_data = changes.model_dump(exclude_unset=True)
            for field in RAW_FIELDS:
                if field not in update_data:
                    continue
                value = update_data[field]
                if value is None and field not in ("notes", "total_fixed_cost"):
                    continue
                setattr(entry, field, value)

            if entry.total_fixed_cost is None:
                entry.total_fixed_cost = self._carry_forward_fixed_cost(
                    entry.store_code, entry.fiscal_year, entry.week_number
                )

            self._apply_metrics(entry)
            entry.updated_by = actor.id
            self.db.flush()

        self.db.refresh(entry)
        logger.info(f"Updated weekly entry {entry.id} for store {entry.store_code}, week {entry.week_iso}")
        return entry

    def delete(self, entry_id: int, actor: Principal) -> None:
        with self._transaction():
            entry = self._find_entry(entry_id)
            ensure_store_access(actor, entry.store_code)
            self.db.delete(entry)

        logger.info(f"Deleted weekly entry {entry_id}")

    def get_last_week(self, store_code: str, actor: Principal) -> Optional[LastWeekData]:
        """
        Most recent entry for a store plus the next period to submit.

        Returns None when the store exists but has no entries yet.
        """
        ensure_store_access(actor, store_code)
        store = self._get_store(store_code)

        last = self.db.query(WeeklyEntry).filter(
            WeeklyEntry.store_code == store_code
        ).order_by(
            WeeklyEntry.fiscal_year.desc(),
            WeeklyEntry.week_number.desc(),
        ).first()

        if last is None:
            return None

        next_year, next_week = fiscal_period.next_year_week(last.fiscal_year, last.week_number)
        return LastWeekData(
            store_code=store.code,
            store_name=store.name,
            fiscal_year=last.fiscal_year,
            week_number=last.week_number,
            week_ending=fiscal_period.week_ending_from_year_week(last.fiscal_year, last.week_number),
            average_wage=last.average_wage or 0.0,
            total_fixed_cost=last.total_fixed_cost or 0.0,
            total_sales=last.total_sales,
            num_transactions=last.num_transactions,
            variable_hours=last.variable_hours,
            next_fiscal_year=next_year,
            next_week_number=next_week,
            next_week_ending=fiscal_period.next_week_ending(last.fiscal_year, last.week_number),
        )

    def recent_entries(
        self,
        limit: int = 10,
        stores: Optional[Iterable[str]] = None,
    ) -> Tuple[List[WeeklyEntry], int]:
        """Newest entries first. ``stores`` is an effective store set (None = all)."""
        query = self.db.query(WeeklyEntry)
        if stores is not None:
            stores = list(stores)
            if not stores:
                return [], 0
            query = query.filter(WeeklyEntry.store_code.in_(stores))

        total_count = query.count()
        entries = query.order_by(
            WeeklyEntry.created_at.desc(),
            WeeklyEntry.id.desc(),
        ).limit(limit).all()
        return entries, total_count
