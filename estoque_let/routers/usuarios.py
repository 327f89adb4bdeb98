"""Router para perfis de usuários."""

import logging

from fastapi import APIRouter, Depends, Query, status

from ..database import DbSession
from ..schemas import ListResponse, NivelAcesso, StatusCadastro, UsuarioCreate, UsuarioOut, UsuarioUpdate
from ..services.inventory import InventoryService
from ..services.listing import ResourceList
from .auth import CurrentUser, require_permission
from .common import paginate, unwrap

logger = logging.getLogger(__name__)
router = APIRouter()

USUARIOS = ResourceList(
    search_fields=["nome", "email"],
    sort_fields=["nome", "email", "nivel_acesso", "created_at"],
)


@router.get("/", response_model=ListResponse[UsuarioOut])
def list_usuarios(
    db: DbSession,
    user: CurrentUser = Depends(require_permission("usuarios.view", "usuarios.edit")),
    search: str | None = Query(None, description="Buscar por nome ou email"),
    nivel_acesso: NivelAcesso | None = Query(None),
    status_usuario: StatusCadastro | None = Query(None, alias="status"),
    order_by: str | None = Query(None),
    order_direction: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    usuarios = unwrap(
        InventoryService(db).get_usuarios(
            nivel_acesso=nivel_acesso.value if nivel_acesso else None,
            status=status_usuario.value if status_usuario else None,
            search=search,
        )
    )
    return paginate(USUARIOS, usuarios, page, page_size, order_by=order_by, order_direction=order_direction)


@router.post("/", response_model=UsuarioOut, status_code=status.HTTP_201_CREATED)
def create_usuario(
    data: UsuarioCreate,
    db: DbSession,
    user: CurrentUser = Depends(require_permission("usuarios.edit")),
):
    """Cria um perfil de usuário (email único)."""
    return unwrap(InventoryService(db).create_usuario(data))


@router.put("/{usuario_id}", response_model=UsuarioOut)
def update_usuario(
    usuario_id: int,
    data: UsuarioUpdate,
    db: DbSession,
    user: CurrentUser = Depends(require_permission("usuarios.edit")),
):
    return unwrap(InventoryService(db).update_usuario(usuario_id, data))
