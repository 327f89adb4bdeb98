"""Router para lojas."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import settings
from ..database import DbSession
from ..schemas import DeleteResponse, ListResponse, LojaCreate, LojaOut, LojaUpdate, StatusLoja
from ..services.inventory import InventoryService
from ..services.listing import ResourceList
from .auth import CurrentUser, get_current_user, require_permission
from .common import paginate, unwrap
from .configuracoes import get_empresa_ativa

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

LOJAS = ResourceList(
    search_fields=["nome", "endereco", "codigo"],
    sort_fields=["nome", "codigo", "status", "created_at"],
)


@router.get("/", response_model=ListResponse[LojaOut])
@limiter.limit("60/minute")
def list_lojas(
    request: Request,
    db: DbSession,
    empresa_id: Optional[int] = Depends(get_empresa_ativa),
    search: str | None = Query(None, description="Buscar por nome, endereço ou código"),
    status_loja: StatusLoja | None = Query(None, alias="status"),
    order_by: str | None = Query(None),
    order_direction: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    """Lista lojas da empresa selecionada."""
    lojas = unwrap(
        InventoryService(db).get_lojas(
            empresa_id=empresa_id,
            status=status_loja.value if status_loja else None,
            search=search,
        )
    )
    return paginate(LOJAS, lojas, page, page_size, order_by=order_by, order_direction=order_direction)


@router.get("/{loja_id}", response_model=LojaOut)
def get_loja(loja_id: int, db: DbSession, user: CurrentUser = Depends(get_current_user)):
    return unwrap(InventoryService(db).get_loja(loja_id))


@router.post("/", response_model=LojaOut, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_loja(
    request: Request,
    data: LojaCreate,
    db: DbSession,
    empresa_id: Optional[int] = Depends(get_empresa_ativa),
    user: CurrentUser = Depends(require_permission("lojas.edit")),
):
    """Cria uma loja (na empresa selecionada se ``empresa_id`` não vier no corpo)."""
    if data.empresa_id is None:
        data.empresa_id = empresa_id
    return unwrap(InventoryService(db).create_loja(data))


@router.put("/{loja_id}", response_model=LojaOut)
def update_loja(
    loja_id: int,
    data: LojaUpdate,
    db: DbSession,
    user: CurrentUser = Depends(require_permission("lojas.edit")),
):
    return unwrap(InventoryService(db).update_loja(loja_id, data))


@router.delete("/{loja_id}", response_model=DeleteResponse)
def delete_loja(
    loja_id: int,
    db: DbSession,
    user: CurrentUser = Depends(require_permission("lojas.edit")),
):
    """Exclui a loja; com estoque ou movimentações, apenas inativa."""
    result = unwrap(InventoryService(db).delete_loja(loja_id))
    if result["acao"] == "desativada":
        message = "Loja possui registros vinculados e foi inativada"
    else:
        message = "Loja excluída com sucesso"
    return {**result, "message": message}
