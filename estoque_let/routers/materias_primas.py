"""Router para matérias-primas."""

import logging

from fastapi import APIRouter, Depends, Query, status

from ..database import DbSession
from ..schemas import ListResponse, MateriaPrimaCreate, MateriaPrimaOut, MateriaPrimaUpdate
from ..services.inventory import InventoryService
from ..services.listing import ResourceList
from .auth import CurrentUser, get_current_user, require_permission
from .common import paginate, unwrap

logger = logging.getLogger(__name__)
router = APIRouter()

MATERIAS_PRIMAS = ResourceList(
    search_fields=["nome", "descricao"],
    sort_fields=["nome", "categoria", "preco_unitario", "created_at"],
    default_order=("nome", "asc"),
)


@router.get("/", response_model=ListResponse[MateriaPrimaOut])
def list_materias_primas(
    db: DbSession,
    user: CurrentUser = Depends(get_current_user),
    search: str | None = Query(None),
    categoria: str | None = Query(None),
    order_by: str | None = Query(None),
    order_direction: str = Query("asc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    materias = unwrap(InventoryService(db).get_materias_primas(categoria=categoria, search=search))
    return paginate(
        MATERIAS_PRIMAS, materias, page, page_size, order_by=order_by, order_direction=order_direction
    )


@router.post("/", response_model=MateriaPrimaOut, status_code=status.HTTP_201_CREATED)
def create_materia_prima(
    data: MateriaPrimaCreate,
    db: DbSession,
    user: CurrentUser = Depends(require_permission("produtos.edit")),
):
    return unwrap(InventoryService(db).create_materia_prima(data))


@router.put("/{materia_id}", response_model=MateriaPrimaOut)
def update_materia_prima(
    materia_id: int,
    data: MateriaPrimaUpdate,
    db: DbSession,
    user: CurrentUser = Depends(require_permission("produtos.edit")),
):
    return unwrap(InventoryService(db).update_materia_prima(materia_id, data))
