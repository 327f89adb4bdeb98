"""Router para produtos."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import settings
from ..database import DbSession
from ..schemas import (
    DeleteResponse,
    ListResponse,
    ProdutoCreate,
    ProdutoOut,
    ProdutoUpdate,
    StatusCadastro,
)
from ..services.inventory import InventoryService
from ..services.listing import ResourceList
from .auth import CurrentUser, get_current_user, require_permission
from .common import paginate, unwrap
from .configuracoes import get_empresa_ativa

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

PRODUTOS = ResourceList(
    search_fields=["nome", "codigo", "codigo_barras"],
    sort_fields=["nome", "codigo", "categoria", "preco", "valor_unitario", "created_at"],
)


@router.get("/", response_model=ListResponse[ProdutoOut])
@limiter.limit("60/minute")
def list_produtos(
    request: Request,
    db: DbSession,
    empresa_id: Optional[int] = Depends(get_empresa_ativa),
    search: str | None = Query(None, description="Buscar por nome, código ou código de barras"),
    categoria: str | None = Query(None),
    status_produto: StatusCadastro | None = Query(None, alias="status"),
    order_by: str | None = Query(None, description="Campo de ordenação"),
    order_direction: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    """Lista produtos com filtros, ordenação e paginação."""
    produtos = unwrap(
        InventoryService(db).get_produtos(
            empresa_id=empresa_id,
            categoria=None if categoria in (None, "", "todas") else categoria,
            status=status_produto.value if status_produto else None,
            search=search,
        )
    )
    return paginate(PRODUTOS, produtos, page, page_size, order_by=order_by, order_direction=order_direction)


@router.get("/{produto_id}", response_model=ProdutoOut)
def get_produto(produto_id: int, db: DbSession, user: CurrentUser = Depends(get_current_user)):
    return unwrap(InventoryService(db).get_produto(produto_id))


@router.post("/", response_model=ProdutoOut, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_produto(
    request: Request,
    data: ProdutoCreate,
    db: DbSession,
    empresa_id: Optional[int] = Depends(get_empresa_ativa),
    user: CurrentUser = Depends(require_permission("produtos.edit")),
):
    """Cria um produto na empresa selecionada."""
    if data.empresa_id is None:
        data.empresa_id = empresa_id
    return unwrap(InventoryService(db).create_produto(data))


@router.put("/{produto_id}", response_model=ProdutoOut)
def update_produto(
    produto_id: int,
    data: ProdutoUpdate,
    db: DbSession,
    user: CurrentUser = Depends(require_permission("produtos.edit")),
):
    return unwrap(InventoryService(db).update_produto(produto_id, data))


@router.delete("/{produto_id}", response_model=DeleteResponse)
def delete_produto(
    produto_id: int,
    db: DbSession,
    user: CurrentUser = Depends(require_permission("produtos.edit")),
):
    """Exclui o produto; com estoque ou movimentações, apenas inativa."""
    result = unwrap(InventoryService(db).delete_produto(produto_id))
    if result["acao"] == "desativada":
        message = "Produto possui registros vinculados e foi inativado"
    else:
        message = "Produto excluído com sucesso"
    return {**result, "message": message}
