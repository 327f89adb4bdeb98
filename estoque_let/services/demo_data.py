"""Seed do banco com os dados de demonstração.

Cada tabela só é populada quando está vazia. Os ids dos dados de
demonstração são remapeados para os ids gerados pelo banco.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from ..demo import MOCK_DATA
from ..models import Categoria, Empresa, Estoque, Fornecedor, Loja, Movimentacao, Produto, Usuario

logger = logging.getLogger(__name__)

# Ordem de inserção (respeita as FKs) e chave natural para reencontrar linhas
TABLES: list[tuple[str, Any, str]] = [
    ("empresas", Empresa, "nome"),
    ("lojas", Loja, "codigo"),
    ("categorias", Categoria, "nome"),
    ("fornecedores", Fornecedor, "nome"),
    ("produtos", Produto, "codigo"),
    ("usuarios", Usuario, "email"),
    ("estoque", Estoque, ""),
    ("movimentacoes", Movimentacao, ""),
]

FOREIGN_KEYS = {
    "empresa_id": "empresas",
    "loja_id": "lojas",
    "categoria_id": "categorias",
    "fornecedor_id": "fornecedores",
    "produto_id": "produtos",
    "usuario_id": "usuarios",
}


def _resolve_ids(db: Session, ids: dict[str, dict[int, int]]) -> None:
    """Preenche o mapa de ids de tabelas já populadas pela chave natural."""
    for table, model, natural_key in TABLES:
        if not natural_key or ids[table]:
            continue
        for row in MOCK_DATA[table]:
            existing = db.query(model).filter(getattr(model, natural_key) == row[natural_key]).first()
            if existing is not None:
                ids[table][row["id"]] = existing.id


def _build_row(table: str, row: dict[str, Any], ids: dict[str, dict[int, int]]) -> dict[str, Any] | None:
    values = {key: value for key, value in row.items() if key != "id"}
    for column, target in FOREIGN_KEYS.items():
        if column not in values or values[column] is None:
            continue
        mapped = ids[target].get(values[column])
        if mapped is None:
            logger.warning(f"Seed {table}: {column}={values[column]} sem correspondente, linha ignorada")
            return None
        values[column] = mapped
    if "data_hora" in values:
        values["data_hora"] = datetime.fromisoformat(values["data_hora"])
    if table == "usuarios":
        values["lojas_associadas"] = [ids["lojas"].get(loja_id, loja_id) for loja_id in values["lojas_associadas"]]
    if table == "movimentacoes":
        values.setdefault("status", "concluida")
    return values


def seed_demo_data(db: Session) -> dict[str, int]:
    """Popula tabelas vazias com os dados de demonstração.

    Retorna quantas linhas foram inseridas por tabela.
    """
    ids: dict[str, dict[int, int]] = {table: {} for table, _, _ in TABLES}
    inserted: dict[str, int] = {}

    for table, model, _ in TABLES:
        if db.query(model).first() is not None:
            inserted[table] = 0
            continue

        _resolve_ids(db, ids)
        count = 0
        for row in MOCK_DATA[table]:
            values = _build_row(table, row, ids)
            if values is None:
                continue
            obj = model(**values)
            db.add(obj)
            db.flush()
            ids[table][row["id"]] = obj.id
            count += 1
        inserted[table] = count

    db.commit()
    logger.info(f"Seed de demonstração: {inserted}")
    return inserted
