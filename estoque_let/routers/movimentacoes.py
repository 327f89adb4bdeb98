"""Router para o livro de movimentações (somente inclusão)."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import settings
from ..database import DbSession
from ..models import Usuario
from ..schemas import ListResponse, MovimentacaoCreate, MovimentacaoOut, TipoMovimentacao
from ..services.inventory import InventoryService
from ..services.listing import ResourceList
from .auth import CurrentUser, require_permission, require_profile
from .common import paginate, unwrap
from .configuracoes import get_empresa_ativa

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

MOVIMENTACOES = ResourceList(
    search_fields=["produto.nome", "produto.codigo", "materia_prima.nome", "motivo"],
    sort_fields=["data_hora", "quantidade", "tipo"],
    default_order=("data_hora", "desc"),
)


@router.get("/", response_model=ListResponse[MovimentacaoOut])
@limiter.limit("60/minute")
def list_movimentacoes(
    request: Request,
    db: DbSession,
    empresa_id: Optional[int] = Depends(get_empresa_ativa),
    tipo: TipoMovimentacao | None = Query(None),
    loja_id: int | None = Query(None),
    data_inicio: date | None = Query(None, description="Data inicial (inclusive)"),
    data_fim: date | None = Query(None, description="Data final (inclusive)"),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    """Movimentações da mais recente para a mais antiga."""
    if data_inicio and data_fim and data_inicio > data_fim:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Data inicial deve ser anterior à data final",
        )

    movimentacoes = unwrap(
        InventoryService(db).get_movimentacoes(
            empresa_id=empresa_id,
            tipo=tipo.value if tipo else None,
            loja_id=loja_id,
            data_inicio=data_inicio,
            data_fim=data_fim,
            search=search,
        )
    )
    return paginate(MOVIMENTACOES, movimentacoes, page, page_size)


@router.post("/", response_model=MovimentacaoOut, status_code=status.HTTP_201_CREATED)
@limiter.limit("60/minute")
def create_movimentacao(
    request: Request,
    data: MovimentacaoCreate,
    db: DbSession,
    user: CurrentUser = Depends(require_permission("movimentacoes.create")),
    profile: Usuario = Depends(require_profile),
):
    """Registra a movimentação e atualiza o saldo na mesma transação."""
    return unwrap(InventoryService(db).create_movimentacao(data, usuario_id=profile.id))
