"""Router para fornecedores."""

from typing import Optional

from fastapi import APIRouter, Depends, status

from ..database import DbSession
from ..schemas import FornecedorCreate, FornecedorOut
from ..services.inventory import InventoryService
from .auth import CurrentUser, require_permission
from .common import unwrap
from .configuracoes import get_empresa_ativa

router = APIRouter()


@router.get("/", response_model=list[FornecedorOut])
def list_fornecedores(db: DbSession, empresa_id: Optional[int] = Depends(get_empresa_ativa)):
    return unwrap(InventoryService(db).get_fornecedores(empresa_id))


@router.post("/", response_model=FornecedorOut, status_code=status.HTTP_201_CREATED)
def create_fornecedor(
    data: FornecedorCreate,
    db: DbSession,
    empresa_id: Optional[int] = Depends(get_empresa_ativa),
    user: CurrentUser = Depends(require_permission("produtos.edit")),
):
    return unwrap(InventoryService(db).create_fornecedor(data, empresa_id))
