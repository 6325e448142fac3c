from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.api.deps import get_current_principal
from app.models.store import Store, Brand
from app.schemas.store import StoreResponse
from app.services.access_scope import Principal, effective_stores

router = APIRouter()


@router.get("", response_model=List[StoreResponse])
async def list_stores(
    brand: Optional[Brand] = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """List stores visible to the caller, optionally for one brand."""
    query = db.query(Store)
    if brand:
        query = query.filter(Store.brand == brand)

    visible = effective_stores(principal)
    if visible is not None:
        query = query.filter(Store.code.in_(sorted(visible)))

    return query.order_by(Store.brand, Store.name).all()
