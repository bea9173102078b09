"""Billing router - FastAPI endpoints for subscriptions"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import (
    SubscriptionCancelRequest,
    SubscriptionCreate,
    SubscriptionCreatedResponse,
    UserSubscriptionResponse,
)
from .subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inscricoes", tags=["Subscriptions"])


def get_subscription_service(db: Session = Depends(get_db)) -> SubscriptionService:
    """Dependency injection for SubscriptionService"""
    return SubscriptionService(db)


@router.post("", response_model=SubscriptionCreatedResponse, status_code=201)
async def create_subscription(
    data: SubscriptionCreate,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Subscribe a user to a plan"""
    result = service.subscribe(data.usuario_id, data.plano_id, data.pagamento_metodo_id)
    return SubscriptionCreatedResponse(
        mensagem="Inscrição criada com sucesso",
        id=result["id"],
        free_trial=result["free_trial"],
        proxima_cobranca=result["next_billing_date"],
    )


@router.get("/usuario/{usuario_id}", response_model=list[UserSubscriptionResponse])
async def list_user_subscriptions(
    usuario_id: int,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """List a user's subscriptions that are not cancelled"""
    return [
        UserSubscriptionResponse(
            id=s.id,
            status=s.status,
            data_inicio=s.start_date,
            proxima_cobranca=s.next_billing_date,
            preco_periodo_atual=float(s.current_period_price),
            plano_id=s.plan_id,
            plano_nome=s.plan.name if s.plan else None,
            plano_description=s.plan.description if s.plan else None,
            ciclo_pagamento=s.plan.billing_cycle if s.plan else None,
            estabelecimento_id=s.establishment_id,
            estabelecimento_nome=s.establishment.name if s.establishment else None,
        )
        for s in service.list_user_subscriptions(usuario_id)
    ]


@router.patch("/{inscricao_id}/cancelar")
async def cancel_subscription(
    inscricao_id: int,
    data: Optional[SubscriptionCancelRequest] = None,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Cancel a subscription"""
    service.cancel_subscription(inscricao_id, reason=data.motivo if data else None)
    return {"mensagem": "Inscrição cancelada com sucesso"}
