"""Catalog domain schemas - Pydantic models for responses"""

from pydantic import BaseModel


class ServiceResponse(BaseModel):
    """Schema for a bookable service"""

    id: int
    nome: str
    preco_base: float
    ativo: bool
