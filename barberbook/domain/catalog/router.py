"""Catalog router - FastAPI endpoints for the service catalog"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from .repository import CatalogRepository
from .schemas import ServiceResponse

router = APIRouter(prefix="/servicos", tags=["Catalog"])


@router.get("", response_model=list[ServiceResponse])
async def list_services(db: Session = Depends(get_db)):
    """List active services"""
    return [
        ServiceResponse(
            id=s.id,
            nome=s.name,
            preco_base=float(s.base_price),
            ativo=s.active,
        )
        for s in CatalogRepository.list_active_services(db)
    ]
