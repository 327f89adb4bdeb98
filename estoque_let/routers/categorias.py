"""Router para categorias de produtos."""

from typing import Optional

from fastapi import APIRouter, Depends, status

from ..database import DbSession
from ..schemas import CategoriaCreate, CategoriaOut
from ..services.inventory import InventoryService
from .auth import CurrentUser, require_permission
from .common import unwrap
from .configuracoes import get_empresa_ativa

router = APIRouter()


@router.get("/", response_model=list[CategoriaOut])
def list_categorias(db: DbSession, empresa_id: Optional[int] = Depends(get_empresa_ativa)):
    """Categorias da empresa e categorias globais, por nome."""
    return unwrap(InventoryService(db).get_categorias(empresa_id))


@router.post("/", response_model=CategoriaOut, status_code=status.HTTP_201_CREATED)
def create_categoria(
    data: CategoriaCreate,
    db: DbSession,
    empresa_id: Optional[int] = Depends(get_empresa_ativa),
    user: CurrentUser = Depends(require_permission("produtos.edit")),
):
    return unwrap(InventoryService(db).create_categoria(data, empresa_id))
