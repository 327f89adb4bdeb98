"""Router para empresas."""

import logging

from fastapi import APIRouter, Depends, Query, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import settings
from ..database import DbSession
from ..schemas import DeleteResponse, EmpresaCreate, EmpresaOut, EmpresaUpdate, ListResponse
from ..services.inventory import InventoryService
from ..services.listing import ResourceList
from .auth import CurrentUser, get_current_user, require_permission
from .common import paginate, unwrap

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

EMPRESAS = ResourceList(
    search_fields=["nome", "cnpj", "endereco"],
    sort_fields=["nome", "created_at"],
    default_order=("nome", "asc"),
)


@router.get("/", response_model=ListResponse[EmpresaOut])
@limiter.limit("60/minute")
def list_empresas(
    request: Request,
    db: DbSession,
    user: CurrentUser = Depends(get_current_user),
    search: str | None = Query(None, description="Busca por nome, CNPJ ou endereço"),
    incluir_inativas: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    """Lista empresas (apenas ativas por padrão), ordenadas por nome."""
    empresas = unwrap(InventoryService(db).get_empresas(incluir_inativas=incluir_inativas))
    return paginate(EMPRESAS, empresas, page, page_size, search=search)


@router.get("/{empresa_id}", response_model=EmpresaOut)
def get_empresa(empresa_id: int, db: DbSession, user: CurrentUser = Depends(get_current_user)):
    return unwrap(InventoryService(db).get_empresa(empresa_id))


@router.post("/", response_model=EmpresaOut, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_empresa(
    request: Request,
    data: EmpresaCreate,
    db: DbSession,
    user: CurrentUser = Depends(require_permission("empresas.edit")),
):
    """Cria uma nova empresa."""
    return unwrap(InventoryService(db).create_empresa(data))


@router.put("/{empresa_id}", response_model=EmpresaOut)
def update_empresa(
    empresa_id: int,
    data: EmpresaUpdate,
    db: DbSession,
    user: CurrentUser = Depends(require_permission("empresas.edit")),
):
    """Atualiza uma empresa."""
    return unwrap(InventoryService(db).update_empresa(empresa_id, data))


@router.post("/{empresa_id}/desativar", response_model=EmpresaOut)
def deactivate_empresa(
    empresa_id: int,
    db: DbSession,
    user: CurrentUser = Depends(require_permission("empresas.edit")),
):
    return unwrap(InventoryService(db).deactivate_empresa(empresa_id))


@router.delete("/{empresa_id}", response_model=DeleteResponse)
def delete_empresa(
    empresa_id: int,
    db: DbSession,
    user: CurrentUser = Depends(require_permission("empresas.edit")),
):
    """Exclui a empresa; com lojas ou produtos vinculados, apenas desativa."""
    result = unwrap(InventoryService(db).delete_empresa(empresa_id))
    if result["acao"] == "desativada":
        message = "Empresa possui registros vinculados e foi desativada"
    else:
        message = "Empresa excluída com sucesso"
    return {**result, "message": message}
