from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from app.models.store import Brand


class StoreResponse(BaseModel):
    id: int
    code: str
    name: str
    brand: Brand
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
