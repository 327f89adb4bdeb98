"""Router para saldos de estoque."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import settings
from ..database import DbSession
from ..schemas import EstoqueCreate, EstoqueListResponse, EstoqueOut, EstoqueUpdate
from ..services.inventory import InventoryService
from ..services.listing import ResourceList
from ..services.stock_status import StatusEstoque, classify, severity, summarize
from .auth import CurrentUser, get_current_user, require_permission
from .common import paginate, unwrap
from .configuracoes import get_empresa_ativa

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def _status(record) -> str:
    return classify(record.quantidade_atual, record.quantidade_minima, record.quantidade_maxima).value


ESTOQUE = ResourceList(
    search_fields=["produto.nome", "produto.codigo", "materia_prima.nome"],
    sort_fields=["produto.nome", "loja.nome", "quantidade_atual", "status", "updated_at"],
    default_order=("updated_at", "desc"),
    derived={"status": _status},
    sort_keys={"status": severity},
)

FILTROS_SERVICO = ("abaixo_minimo", "ok")


@router.get("/", response_model=EstoqueListResponse)
@limiter.limit("60/minute")
def list_estoque(
    request: Request,
    db: DbSession,
    empresa_id: Optional[int] = Depends(get_empresa_ativa),
    loja_id: int | None = Query(None),
    categoria: str | None = Query(None),
    search: str | None = Query(None, description="Buscar por nome ou código do produto"),
    status_estoque: str | None = Query(
        None, alias="status", description="critico, baixo, normal, alto, abaixo_minimo ou ok"
    ),
    order_by: str | None = Query(None),
    order_direction: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    """Saldos com status calculado, resumo por status e categorias disponíveis."""
    valid = {s.value for s in StatusEstoque} | set(FILTROS_SERVICO)
    if status_estoque and status_estoque not in valid and status_estoque != "todos":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Status inválido")

    registros = unwrap(
        InventoryService(db).get_estoque(
            empresa_id=empresa_id,
            loja_id=loja_id,
            categoria=None if categoria in (None, "", "todas") else categoria,
            search=search,
            status=status_estoque if status_estoque in FILTROS_SERVICO else None,
        )
    )

    resumo = summarize(registros)
    categorias = sorted({r.produto.categoria for r in registros if r.produto is not None})

    filters = {}
    if status_estoque and status_estoque not in FILTROS_SERVICO:
        filters["status"] = status_estoque

    payload = paginate(
        ESTOQUE,
        registros,
        page,
        page_size,
        order_by=order_by,
        order_direction=order_direction,
        filters=filters,
    )
    return {**payload, "resumo": resumo, "categorias": categorias}


@router.get("/{estoque_id}", response_model=EstoqueOut)
def get_estoque(estoque_id: int, db: DbSession, user: CurrentUser = Depends(get_current_user)):
    return unwrap(InventoryService(db).get_estoque_item(estoque_id))


@router.post("/", response_model=EstoqueOut, status_code=status.HTTP_201_CREATED)
def create_estoque(
    data: EstoqueCreate,
    db: DbSession,
    user: CurrentUser = Depends(require_permission("estoque.edit")),
):
    """Cria o registro de estoque de um item em uma loja (único por loja/item)."""
    return unwrap(InventoryService(db).create_estoque(data))


@router.put("/{estoque_id}", response_model=EstoqueOut)
def update_estoque(
    estoque_id: int,
    data: EstoqueUpdate,
    db: DbSession,
    user: CurrentUser = Depends(require_permission("estoque.edit")),
):
    """Ajusta limites ou valor unitário.

    Quantidades devem mudar por movimentações; ``quantidade_atual`` aqui é
    aceita apenas para correções administrativas.
    """
    return unwrap(InventoryService(db).update_estoque(estoque_id, data))


@router.post("/sincronizar")
@limiter.limit("5/minute")
def sync_estoque(
    request: Request,
    db: DbSession,
    empresa_id: Optional[int] = Depends(get_empresa_ativa),
    user: CurrentUser = Depends(require_permission("estoque.edit")),
):
    """Cria registros zerados para produtos ativos sem estoque nas lojas ativas."""
    if empresa_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nenhuma empresa selecionada")

    criados = unwrap(InventoryService(db).sync_estoque(empresa_id))
    return {"criados": criados, "message": f"{criados} registros de estoque criados"}
