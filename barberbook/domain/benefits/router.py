"""Benefit router - FastAPI endpoints for plan benefit rules"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import BenefitCreate, BenefitResponse
from .service import BenefitService, to_benefit_response

router = APIRouter(prefix="/planos", tags=["Benefits"])


def get_benefit_service(db: Session = Depends(get_db)) -> BenefitService:
    """Dependency injection for BenefitService"""
    return BenefitService(db)


@router.get("/{plano_id}/beneficios", response_model=list[BenefitResponse])
async def list_plan_benefits(
    plano_id: int,
    service: BenefitService = Depends(get_benefit_service),
):
    """List active benefit rules of a plan in evaluation order"""
    return [to_benefit_response(b) for b in service.list_benefits(plano_id)]


@router.post("/{plano_id}/beneficios", status_code=201)
async def add_plan_benefit(
    plano_id: int,
    data: BenefitCreate,
    service: BenefitService = Depends(get_benefit_service),
):
    """Add a benefit rule to a plan"""
    benefit = service.add_benefit(plano_id, data)
    return {"mensagem": "Benefício adicionado com sucesso", "id": benefit.id}
