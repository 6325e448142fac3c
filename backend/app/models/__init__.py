from app.models.store import Store, Brand
from app.models.weekly_entry import WeeklyEntry

__all__ = [
    "Store",
    "Brand",
    "WeeklyEntry",
]
