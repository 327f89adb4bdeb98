"""Relatórios tabulares e exportação CSV."""

import csv
import logging
from dataclasses import dataclass, field
from datetime import date
from io import StringIO
from typing import Optional

from sqlalchemy.orm import Session

from .dashboard import format_date_br
from .inventory import ApiResponse, ErrorCode, InventoryService
from .listing import ListParams, ResourceList

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportDefinition:
    tipo: str
    titulo: str
    headers: tuple[str, ...]


REPORTS = {
    "estoque-critico": ReportDefinition(
        "estoque-critico",
        "Estoque Crítico",
        ("Código", "Produto", "Categoria", "Atual", "Mínimo", "Máximo"),
    ),
    "estoque-alto": ReportDefinition(
        "estoque-alto",
        "Estoque Alto",
        ("Código", "Produto", "Categoria", "Atual", "Mínimo", "Máximo"),
    ),
    "produtos-categoria": ReportDefinition(
        "produtos-categoria",
        "Produtos por Categoria",
        ("Código", "Produto", "Categoria"),
    ),
    "movimentacoes-periodo": ReportDefinition(
        "movimentacoes-periodo",
        "Movimentações por Período",
        ("Produto", "Tipo", "Quantidade", "Data", "Usuário"),
    ),
}


def _item(record):
    return record.produto or record.materia_prima


def _item_attr(name: str):
    def getter(record):
        item = _item(record)
        return getattr(item, name, None) if item is not None else None

    return getter


# Estoque e movimentações referenciam produto ou matéria-prima
ITEM_FIELDS = {
    "item_nome": _item_attr("nome"),
    "item_codigo": _item_attr("codigo"),
    "item_categoria": _item_attr("categoria"),
}

ESTOQUE_LIST = ResourceList(
    search_fields=["item_nome", "item_codigo"],
    sort_fields=["item_nome"],
    default_order=("item_nome", "asc"),
    derived=ITEM_FIELDS,
)
PRODUTOS_LIST = ResourceList(
    search_fields=["nome", "codigo"],
    sort_fields=["categoria", "nome"],
    default_order=("categoria", "asc"),
)
MOVIMENTACOES_LIST = ResourceList(
    search_fields=["item_nome", "item_codigo"],
    sort_fields=["data_hora"],
    default_order=("data_hora", "desc"),
    derived=ITEM_FIELDS,
)


@dataclass
class Report:
    tipo: str
    titulo: str
    headers: list[str]
    rows: list[list] = field(default_factory=list)
    gerado_em: date = field(default_factory=date.today)

    @property
    def filename(self) -> str:
        return report_filename(self.tipo, self.gerado_em)


def report_filename(tipo: str, day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"relatorio-{tipo}-{day.isoformat()}.csv"


def to_csv(report: Report) -> str:
    """Serializa o relatório em CSV (cabeçalho + linhas)."""
    output = StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(report.headers)
    for row in report.rows:
        writer.writerow(["" if value is None else value for value in row])
    return output.getvalue()


class ReportService:
    """Monta relatórios a partir da camada de acesso a dados."""

    def __init__(self, db: Session):
        self.inventory = InventoryService(db)

    def build(
        self,
        tipo: str,
        empresa_id: Optional[int] = None,
        search: Optional[str] = None,
        categoria: Optional[str] = None,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
    ) -> ApiResponse[Report]:
        definition = REPORTS.get(tipo)
        if definition is None:
            return ApiResponse.fail(f"Tipo de relatório inválido: {tipo}", ErrorCode.INVALID)

        report = Report(tipo=tipo, titulo=definition.titulo, headers=list(definition.headers))

        if tipo in ("estoque-critico", "estoque-alto"):
            result = self.inventory.get_estoque(empresa_id=empresa_id)
            if not result.ok:
                return result
            params = ListParams(search=search, filters={"item_categoria": categoria})
            records, _ = ESTOQUE_LIST.apply(result.data, params)
            for record in records:
                if tipo == "estoque-critico" and record.quantidade_atual > record.quantidade_minima:
                    continue
                if tipo == "estoque-alto" and record.quantidade_atual < record.quantidade_maxima:
                    continue
                item = _item(record)
                report.rows.append(
                    [
                        getattr(item, "codigo", None),
                        item.nome if item is not None else None,
                        getattr(item, "categoria", None),
                        record.quantidade_atual,
                        record.quantidade_minima,
                        record.quantidade_maxima,
                    ]
                )

        elif tipo == "produtos-categoria":
            result = self.inventory.get_produtos(empresa_id=empresa_id)
            if not result.ok:
                return result
            params = ListParams(search=search, filters={"categoria": categoria})
            produtos, _ = PRODUTOS_LIST.apply(result.data, params)
            report.rows = [[p.codigo, p.nome, p.categoria] for p in produtos]

        else:
            result = self.inventory.get_movimentacoes(
                empresa_id=empresa_id, data_inicio=data_inicio, data_fim=data_fim
            )
            if not result.ok:
                return result
            params = ListParams(search=search, filters={"item_categoria": categoria})
            movimentacoes, _ = MOVIMENTACOES_LIST.apply(result.data, params)
            for mov in movimentacoes:
                item = _item(mov)
                report.rows.append(
                    [
                        item.nome if item is not None else None,
                        mov.tipo,
                        mov.quantidade,
                        format_date_br(mov.data_hora) if mov.data_hora else None,
                        mov.usuario.nome if mov.usuario is not None else None,
                    ]
                )

        logger.info(f"Relatório {tipo} gerado com {len(report.rows)} linhas")
        return ApiResponse(data=report, count=len(report.rows))
