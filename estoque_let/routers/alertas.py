"""Router para alertas."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..database import DbSession
from ..schemas import (
    AlertaCreate,
    AlertaOut,
    AlertaUpdate,
    ListResponse,
    PrioridadeAlerta,
    StatusAlerta,
    TipoAlerta,
)
from ..services.inventory import InventoryService
from ..services.listing import ResourceList
from .auth import CurrentUser, require_permission
from .common import paginate, unwrap
from .configuracoes import get_empresa_ativa

logger = logging.getLogger(__name__)
router = APIRouter()

ALERTAS = ResourceList(
    search_fields=["titulo", "descricao"],
    sort_fields=["created_at", "prioridade", "status"],
)


@router.get("/", response_model=ListResponse[AlertaOut])
def list_alertas(
    db: DbSession,
    empresa_id: Optional[int] = Depends(get_empresa_ativa),
    search: str | None = Query(None),
    tipo: TipoAlerta | None = Query(None),
    prioridade: PrioridadeAlerta | None = Query(None),
    status_alerta: StatusAlerta | None = Query(None, alias="status"),
    loja_id: int | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    """Alertas mais recentes primeiro."""
    alertas = unwrap(
        InventoryService(db).get_alertas(
            empresa_id=empresa_id,
            tipo=tipo.value if tipo else None,
            prioridade=prioridade.value if prioridade else None,
            status=status_alerta.value if status_alerta else None,
            loja_id=loja_id,
        )
    )
    return paginate(ALERTAS, alertas, page, page_size, search=search)


@router.post("/", response_model=AlertaOut, status_code=status.HTTP_201_CREATED)
def create_alerta(
    data: AlertaCreate,
    db: DbSession,
    user: CurrentUser = Depends(require_permission("alertas.edit")),
):
    return unwrap(InventoryService(db).create_alerta(data))


@router.put("/{alerta_id}", response_model=AlertaOut)
def update_alerta(
    alerta_id: int,
    data: AlertaUpdate,
    db: DbSession,
    user: CurrentUser = Depends(require_permission("alertas.edit")),
):
    """Atualiza status (novo, lido, resolvido) ou prioridade."""
    return unwrap(InventoryService(db).update_alerta(alerta_id, data))
