"""Agregações do dashboard: contagens, estoque baixo e gráfico de movimentações."""

import logging
from collections import OrderedDict
from typing import Optional

from sqlalchemy.orm import Session

from .inventory import ApiResponse, InventoryService

logger = logging.getLogger(__name__)

ESTOQUE_BAIXO_LIMITE = 5
MOVIMENTACOES_RECENTES = 10
GRAFICO_DIAS = 7


def format_date_br(value) -> str:
    """Data no formato pt-BR (dd/mm/aaaa)."""
    return value.strftime("%d/%m/%Y")


def chart_series(movimentacoes, max_groups: int = GRAFICO_DIAS) -> list[dict]:
    """Agrupa movimentações por dia somando entradas e saídas.

    Mantém a ordem em que cada dia aparece pela primeira vez (as
    movimentações chegam da mais recente para a mais antiga).
    """
    groups: OrderedDict[str, dict] = OrderedDict()
    for mov in movimentacoes:
        when = mov.data_hora or mov.created_at
        if when is None:
            continue
        label = format_date_br(when)
        group = groups.setdefault(label, {"data": label, "entradas": 0, "saidas": 0})
        if mov.tipo == "entrada":
            group["entradas"] += mov.quantidade
        elif mov.tipo == "saida":
            group["saidas"] += mov.quantidade

    return list(groups.values())[:max_groups]


def low_stock(estoques, limit: int = ESTOQUE_BAIXO_LIMITE) -> list[dict]:
    """Primeiros itens abaixo do mínimo, com a diferença para o mínimo."""
    items = []
    for estoque in estoques:
        if estoque.quantidade_atual >= estoque.quantidade_minima:
            continue
        item = estoque.produto or estoque.materia_prima
        items.append(
            {
                "estoque_id": estoque.id,
                "produto": item.nome if item is not None else None,
                "codigo": getattr(item, "codigo", None),
                "loja": estoque.loja.nome if estoque.loja is not None else None,
                "quantidade_atual": estoque.quantidade_atual,
                "quantidade_minima": estoque.quantidade_minima,
                "diferenca": max(0, estoque.quantidade_minima - estoque.quantidade_atual),
            }
        )
        if len(items) >= limit:
            break
    return items


class DashboardService:
    """Monta o payload completo do dashboard."""

    def __init__(self, db: Session):
        self.inventory = InventoryService(db)

    def build(self, empresa_id: Optional[int] = None) -> ApiResponse[dict]:
        stats = self.inventory.get_dashboard_stats(empresa_id)
        if not stats.ok:
            return stats

        estoque = self.inventory.get_estoque(empresa_id=empresa_id, status="abaixo_minimo")
        if not estoque.ok:
            return estoque

        movimentacoes = self.inventory.get_movimentacoes(empresa_id=empresa_id, limit=MOVIMENTACOES_RECENTES)
        if not movimentacoes.ok:
            return movimentacoes

        return ApiResponse(
            data={
                "stats": stats.data,
                "estoque_baixo": low_stock(estoque.data),
                "grafico": chart_series(movimentacoes.data),
            }
        )
