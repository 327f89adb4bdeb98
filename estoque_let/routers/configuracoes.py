"""Router de configurações: empresa selecionada, preferências e listas auxiliares."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict

from ..database import DbSession
from ..schemas import CategoriaOut, EmpresaOut, FornecedorOut, LojaOut
from ..services.company_selection import CompanySelectionService
from ..services.inventory import DEFAULT_CATEGORIAS, UNIDADES
from .auth import CurrentUser, get_current_user
from .common import unwrap

logger = logging.getLogger(__name__)
router = APIRouter()


# === Schemas ===


class EmpresasSelecaoOut(BaseModel):
    empresas: list[EmpresaOut]
    selecionada: Optional[EmpresaOut] = None


class SelecionarEmpresa(BaseModel):
    empresa_id: int


class PreferenciasOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    empresa_selecionada_id: Optional[int] = None
    loja_atual_id: Optional[int] = None
    sidebar_collapsed: bool = False


class PreferenciasUpdate(BaseModel):
    sidebar_collapsed: Optional[bool] = None
    loja_atual_id: Optional[int] = None


class LookupsOut(BaseModel):
    lojas: list[LojaOut]
    categorias: list[CategoriaOut]
    fornecedores: list[FornecedorOut]
    categorias_padrao: list[str]
    unidades: list[str]


# === Dependências ===


def get_empresa_ativa(
    db: DbSession,
    empresa_id: Optional[int] = Query(None, description="Padrão: empresa selecionada"),
    user: CurrentUser = Depends(get_current_user),
) -> Optional[int]:
    """Empresa do escopo da requisição: parâmetro explícito ou seleção salva."""
    if empresa_id is not None:
        return empresa_id
    return CompanySelectionService(db).active_empresa_id(user.identity.id)


# === Endpoints ===


@router.get("/empresas", response_model=EmpresasSelecaoOut)
def list_empresas_selecao(db: DbSession, user: CurrentUser = Depends(get_current_user)):
    """Empresas ativas e a empresa selecionada (auto-seleciona a primeira)."""
    return unwrap(CompanySelectionService(db).load_companies(user.identity.id))


@router.put("/empresa-selecionada", response_model=EmpresaOut)
def set_empresa_selecionada(
    data: SelecionarEmpresa,
    db: DbSession,
    user: CurrentUser = Depends(get_current_user),
):
    """Define a empresa selecionada."""
    return unwrap(CompanySelectionService(db).select(user.identity.id, data.empresa_id))


@router.get("/preferencias", response_model=PreferenciasOut)
def get_preferencias(db: DbSession, user: CurrentUser = Depends(get_current_user)):
    return CompanySelectionService(db).get_preferencias(user.identity.id)


@router.put("/preferencias", response_model=PreferenciasOut)
def update_preferencias(
    data: PreferenciasUpdate,
    db: DbSession,
    user: CurrentUser = Depends(get_current_user),
):
    """Atualiza flag da sidebar e loja atual (``loja_atual_id: null`` limpa)."""
    fields = data.model_dump(exclude_unset=True)
    limpar_loja = "loja_atual_id" in fields and fields["loja_atual_id"] is None
    return unwrap(
        CompanySelectionService(db).update_preferencias(
            user.identity.id,
            sidebar_collapsed=data.sidebar_collapsed,
            loja_atual_id=data.loja_atual_id,
            limpar_loja=limpar_loja,
        )
    )


@router.get("/lookups", response_model=LookupsOut)
def get_lookups(db: DbSession, empresa_id: Optional[int] = Depends(get_empresa_ativa)):
    """Lojas, categorias e fornecedores da empresa selecionada."""
    if empresa_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nenhuma empresa selecionada")

    data = unwrap(CompanySelectionService(db).lookups(empresa_id))
    return {**data, "categorias_padrao": DEFAULT_CATEGORIAS, "unidades": UNIDADES}
