"""Router para o dashboard."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import settings
from ..database import DbSession
from ..services.dashboard import DashboardService
from ..services.inventory import InventoryService
from .common import unwrap
from .configuracoes import get_empresa_ativa

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


# === Schemas ===

class DashboardStats(BaseModel):
    """Contagens gerais."""
    total_lojas: int
    lojas_ativas: int
    total_produtos: int
    estoques_baixos: int
    movimentacoes_semana: int


class EstoqueBaixoItem(BaseModel):
    """Item abaixo do estoque mínimo."""
    estoque_id: int
    produto: Optional[str] = None
    codigo: Optional[str] = None
    loja: Optional[str] = None
    quantidade_atual: int
    quantidade_minima: int
    diferenca: int


class ChartDataPoint(BaseModel):
    """Entradas e saídas de um dia."""
    data: str
    entradas: int
    saidas: int


class DashboardResponse(BaseModel):
    stats: DashboardStats
    estoque_baixo: List[EstoqueBaixoItem]
    grafico: List[ChartDataPoint]


# === Endpoints ===

@router.get("/", response_model=DashboardResponse)
@limiter.limit("30/minute")
def get_dashboard(
    request: Request,
    db: DbSession,
    empresa_id: Optional[int] = Depends(get_empresa_ativa),
):
    """Estatísticas, estoque baixo (top 5) e gráfico de movimentações recentes."""
    return unwrap(DashboardService(db).build(empresa_id))


@router.get("/stats", response_model=DashboardStats)
def get_stats(db: DbSession, empresa_id: Optional[int] = Depends(get_empresa_ativa)):
    """Apenas as contagens."""
    return unwrap(InventoryService(db).get_dashboard_stats(empresa_id))
