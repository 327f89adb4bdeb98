"""Empresa selecionada e preferências de interface por usuário."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models import Empresa, Loja, PreferenciaUsuario
from .inventory import ApiResponse, ErrorCode, InventoryService

logger = logging.getLogger(__name__)


class CompanySelectionService:
    def __init__(self, db: Session):
        self.db = db
        self.inventory = InventoryService(db)

    def get_preferencias(self, auth_user_id: int) -> PreferenciaUsuario:
        prefs = self.db.get(PreferenciaUsuario, auth_user_id)
        if prefs is None:
            prefs = PreferenciaUsuario(auth_user_id=auth_user_id, sidebar_collapsed=False)
            self.db.add(prefs)
            self.db.commit()
            self.db.refresh(prefs)
        return prefs

    def load_companies(self, auth_user_id: int) -> ApiResponse[dict]:
        """Lista empresas ativas e garante uma seleção válida.

        Se a empresa salva não está mais na lista, seleciona a primeira.
        """
        result = self.inventory.get_empresas()
        if not result.ok:
            return result

        empresas = result.data
        prefs = self.get_preferencias(auth_user_id)
        ids = {empresa.id for empresa in empresas}

        if prefs.empresa_selecionada_id not in ids:
            novo = empresas[0].id if empresas else None
            if novo != prefs.empresa_selecionada_id:
                prefs.empresa_selecionada_id = novo
                self.db.commit()
                logger.info(f"Empresa selecionada automaticamente: {novo} (usuário {auth_user_id})")

        selecionada = next((e for e in empresas if e.id == prefs.empresa_selecionada_id), None)
        return ApiResponse(data={"empresas": empresas, "selecionada": selecionada}, count=len(empresas))

    def select(self, auth_user_id: int, empresa_id: int) -> ApiResponse[Empresa]:
        empresa = self.db.get(Empresa, empresa_id)
        if empresa is None or not empresa.ativo:
            return ApiResponse.fail("Empresa não encontrada", ErrorCode.NOT_FOUND)

        prefs = self.get_preferencias(auth_user_id)
        prefs.empresa_selecionada_id = empresa.id
        # Loja atual pertence à empresa anterior
        if prefs.loja_atual_id is not None:
            loja = self.db.get(Loja, prefs.loja_atual_id)
            if loja is None or loja.empresa_id != empresa.id:
                prefs.loja_atual_id = None
        self.db.commit()
        return ApiResponse(data=empresa)

    def active_empresa_id(self, auth_user_id: int) -> Optional[int]:
        prefs = self.db.get(PreferenciaUsuario, auth_user_id)
        if prefs is not None and prefs.empresa_selecionada_id is not None:
            empresa = self.db.get(Empresa, prefs.empresa_selecionada_id)
            if empresa is not None and empresa.ativo:
                return empresa.id

        # Seleção ausente, removida ou desativada: escolhe a primeira ativa
        result = self.load_companies(auth_user_id)
        if result.ok and result.data["selecionada"] is not None:
            return result.data["selecionada"].id
        return None

    def update_preferencias(
        self,
        auth_user_id: int,
        sidebar_collapsed: Optional[bool] = None,
        loja_atual_id: Optional[int] = None,
        limpar_loja: bool = False,
    ) -> ApiResponse[PreferenciaUsuario]:
        prefs = self.get_preferencias(auth_user_id)
        if sidebar_collapsed is not None:
            prefs.sidebar_collapsed = sidebar_collapsed
        if limpar_loja:
            prefs.loja_atual_id = None
        elif loja_atual_id is not None:
            if self.db.get(Loja, loja_atual_id) is None:
                return ApiResponse.fail("Loja não encontrada", ErrorCode.NOT_FOUND)
            prefs.loja_atual_id = loja_atual_id
        self.db.commit()
        self.db.refresh(prefs)
        return ApiResponse(data=prefs)

    def lookups(self, empresa_id: Optional[int]) -> ApiResponse[dict]:
        """Listas auxiliares (lojas, categorias, fornecedores) da empresa."""
        lojas = self.inventory.get_lojas(empresa_id=empresa_id, order_by="nome", order_direction="asc")
        if not lojas.ok:
            return lojas
        categorias = self.inventory.get_categorias(empresa_id)
        if not categorias.ok:
            return categorias
        fornecedores = self.inventory.get_fornecedores(empresa_id)
        if not fornecedores.ok:
            return fornecedores

        return ApiResponse(
            data={
                "lojas": lojas.data,
                "categorias": categorias.data,
                "fornecedores": fornecedores.data,
            }
        )
