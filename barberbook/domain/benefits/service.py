"""Benefit service - Management of the discount rules attached to plans"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...database import transaction_scope
from ...models import PlanBenefit
from ...shared.exceptions import InternalError, NotFoundError
from ..catalog.repository import CatalogRepository
from .evaluator import describe_benefit
from .repository import BenefitRepository
from .schemas import BenefitCreate, BenefitResponse

logger = logging.getLogger(__name__)


def to_benefit_response(benefit: PlanBenefit) -> BenefitResponse:
    return BenefitResponse(
        id=benefit.id,
        plano_id=benefit.plan_id,
        tipo_beneficio=benefit.benefit_type,
        servico_id=benefit.service_id,
        servico_nome=benefit.service.name if benefit.service else None,
        servico_preco=float(benefit.service.base_price) if benefit.service else None,
        condicao_tipo=benefit.condition_type,
        condicao_valor=benefit.condition_value,
        desconto_percentual=(
            float(benefit.discount_percent) if benefit.discount_percent is not None else None
        ),
        desconto_fixo=float(benefit.discount_fixed) if benefit.discount_fixed is not None else None,
        ordem=benefit.order,
        descricao=describe_benefit(benefit),
    )


class BenefitService:
    """Service layer for plan benefit rules"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BenefitRepository()
        self.catalog = CatalogRepository()

    def _require_plan(self, plan_id: int):
        plan = self.catalog.get_plan(self.db, plan_id)
        if not plan:
            raise NotFoundError("Plano não encontrado")
        return plan

    def list_benefits(self, plan_id: int) -> list[PlanBenefit]:
        """Active rules of a plan in the order they are evaluated"""
        self._require_plan(plan_id)
        return self.repo.list_plan_benefits(self.db, plan_id)

    def add_benefit(self, plan_id: int, data: BenefitCreate) -> PlanBenefit:
        """Attach a new rule to a plan"""
        self._require_plan(plan_id)

        if data.servico_id is not None and not self.catalog.get_active_service(self.db, data.servico_id):
            raise NotFoundError("Serviço não encontrado")

        try:
            with transaction_scope(self.db):
                benefit = self.repo.create_benefit(
                    self.db,
                    plan_id,
                    benefit_type=data.tipo_beneficio,
                    service_id=data.servico_id,
                    condition_type=data.condicao_tipo,
                    condition_value=data.condicao_valor,
                    discount_percent=data.desconto_percentual,
                    discount_fixed=data.desconto_fixo,
                    order=data.ordem,
                )
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to add benefit to plan {plan_id}: {e}")
            raise InternalError("Erro ao adicionar benefício")

        logger.info(
            f"✅ Added {benefit.benefit_type}/{benefit.condition_type} benefit {benefit.id} to plan {plan_id}"
        )
        return benefit
