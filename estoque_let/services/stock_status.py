"""Classificação de status de estoque por limites mínimo/máximo."""

from collections.abc import Iterable
from enum import Enum


class StatusEstoque(str, Enum):
    CRITICO = "critico"
    BAIXO = "baixo"
    NORMAL = "normal"
    ALTO = "alto"


# Gravidade para ordenação: crítico primeiro
SEVERIDADE = {
    StatusEstoque.CRITICO.value: 0,
    StatusEstoque.BAIXO.value: 1,
    StatusEstoque.NORMAL.value: 2,
    StatusEstoque.ALTO.value: 3,
}


def severity(status: str) -> int:
    return SEVERIDADE[StatusEstoque(status).value]


def classify(atual: int, minimo: int, maximo: int) -> StatusEstoque:
    """Classifica um saldo.

    A ordem das verificações importa: ``atual <= 0`` é sempre crítico, mesmo
    quando o mínimo também é zero.
    """
    if atual <= 0:
        return StatusEstoque.CRITICO
    if atual <= minimo:
        return StatusEstoque.BAIXO
    if atual >= maximo:
        return StatusEstoque.ALTO
    return StatusEstoque.NORMAL


def progress(atual: int, minimo: int, maximo: int) -> float:
    """Percentual do saldo entre mínimo e máximo, limitado a [0, 100].

    Faixa degenerada (máximo <= mínimo) retorna 50.
    """
    if maximo <= minimo:
        return 50.0
    value = (atual - minimo) / (maximo - minimo) * 100
    return max(0.0, min(100.0, value))


def summarize(records: Iterable) -> dict[str, int]:
    """Conta registros por status.

    Aceita objetos com ``quantidade_atual``, ``quantidade_minima`` e
    ``quantidade_maxima`` (models ou schemas).
    """
    counts = {status.value: 0 for status in StatusEstoque}
    total = 0
    for record in records:
        status = classify(
            record.quantidade_atual,
            record.quantidade_minima,
            record.quantidade_maxima,
        )
        counts[status.value] += 1
        total += 1

    return {
        "total": total,
        **counts,
        "com_alerta": counts["critico"] + counts["baixo"],
    }
