"""
Weekly entry data model.

One row per store and fiscal week. Raw inputs are entered by store staff;
derived KPIs are recomputed from them on every write.
"""

from sqlalchemy import Column, Integer, Float, String, Text, Date, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.database import Base


class WeeklyEntry(Base):
    __tablename__ = "weekly_entries"

    id = Column(Integer, primary_key=True, index=True)
    store_code = Column(String(50), ForeignKey("stores.code"), nullable=False)
    fiscal_year = Column(Integer, nullable=False)
    week_number = Column(Integer, nullable=False)
    week_iso = Column(String(7), nullable=False)  # "YYYY-WW"
    week_ending = Column(Date, nullable=False)

    # Raw inputs
    total_sales = Column(Float, nullable=False)
    num_transactions = Column(Integer, nullable=False)
    variable_hours = Column(Float, nullable=False)
    average_wage = Column(Float, nullable=False)
    total_fixed_cost = Column(Float, nullable=False, default=0.0)
    notes = Column(Text)

    # Derived
    variable_labor_cost = Column(Float, nullable=False)
    total_labor_cost = Column(Float, nullable=False)
    total_labor_percent = Column(Float, nullable=False)
    variable_labor_percent = Column(Float, nullable=False)
    fixed_labor_percent = Column(Float, nullable=False)
    avg_transaction_value = Column(Float, nullable=False)
    sales_per_labor_hour = Column(Float, nullable=False)
    transactions_per_labor_hour = Column(Float, nullable=False)

    # Prior-year shadows, copied from the same store's entry a year earlier
    total_sales_py = Column(Float)
    num_transactions_py = Column(Integer)
    variable_hours_py = Column(Float)
    total_labor_cost_py = Column(Float)
    total_labor_percent_py = Column(Float)  # percent units, like total_labor_percent
    delta_sales_percent = Column(Float)
    delta_hours_percent = Column(Float)
    delta_total_labor_percent = Column(Float)

    # Audit
    created_by = Column(Integer)
    updated_by = Column(Integer)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    store = relationship("Store", back_populates="weekly_entries")

    __table_args__ = (
        UniqueConstraint('store_code', 'fiscal_year', 'week_number', name='uq_weekly_entries_store_year_week'),
        Index('ix_weekly_entries_week_iso', 'week_iso'),
        Index('ix_weekly_entries_store_week_iso', 'store_code', 'week_iso'),
    )

    def __repr__(self):
        return f"<WeeklyEntry(store={self.store_code}, week={self.week_iso}, sales={self.total_sales})>"
