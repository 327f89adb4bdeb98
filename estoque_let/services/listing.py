"""Listagem genérica: busca, filtros, ordenação e paginação em memória.

Cada router instancia um ``ResourceList`` com os campos do seu recurso em vez
de repetir a mesma lógica de filtro/ordenação por entidade.
"""

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")

# Valores de dropdown que significam "sem filtro"
EMPTY_FILTER_VALUES = {"", "todos", "todas", "all"}

ORDER_DIRECTIONS = ("asc", "desc")


@dataclass
class ListParams:
    """Parâmetros de listagem vindos da query string."""

    search: str | None = None
    filters: dict[str, Any] = field(default_factory=dict)
    order_by: str | None = None
    order_direction: str = "asc"
    page: int = 1
    page_size: int | None = None


def resolve(item: Any, path: str) -> Any:
    """Resolve um caminho com pontos (``produto.nome``) em objetos ou dicts."""
    value = item
    for part in path.split("."):
        if value is None:
            return None
        if isinstance(value, dict):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


def _normalize(value: Any) -> Any:
    if hasattr(value, "value"):  # Enum
        value = value.value
    if isinstance(value, str):
        return value.lower()
    return value


def is_empty_filter(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and value.strip().lower() in EMPTY_FILTER_VALUES


def toggle_sort(current_field: str | None, current_direction: str, field_name: str) -> tuple[str, str]:
    """Alterna a ordenação ao clicar no cabeçalho de uma coluna.

    Mesmo campo inverte a direção; campo novo começa ascendente.
    """
    if current_field == field_name:
        return field_name, "desc" if current_direction == "asc" else "asc"
    return field_name, "asc"


class ResourceList(Generic[T]):
    """Busca, filtro, ordenação e paginação de uma lista de registros."""

    def __init__(
        self,
        search_fields: Sequence[str],
        sort_fields: Sequence[str],
        default_order: tuple[str, str] = ("created_at", "desc"),
        derived: dict[str, Callable[[T], Any]] | None = None,
        sort_keys: dict[str, Callable[[Any], Any]] | None = None,
    ):
        self.search_fields = tuple(search_fields)
        self.sort_fields = tuple(sort_fields)
        self.default_order = default_order
        # Campos calculados (ex.: status do estoque)
        self.derived = derived or {}
        # Chave de ordenação própria (ex.: status por gravidade, não alfabético)
        self.sort_keys = sort_keys or {}

    def value_of(self, item: T, name: str) -> Any:
        getter = self.derived.get(name)
        if getter is not None:
            return getter(item)
        return resolve(item, name)

    def matches_search(self, item: T, term: str | None) -> bool:
        if not term or not term.strip():
            return True
        needle = term.strip().lower()
        for path in self.search_fields:
            value = self.value_of(item, path)
            if value is not None and needle in str(value).lower():
                return True
        return False

    def matches_filters(self, item: T, filters: dict[str, Any]) -> bool:
        for name, expected in filters.items():
            if is_empty_filter(expected):
                continue
            if _normalize(self.value_of(item, name)) != _normalize(expected):
                return False
        return True

    def sort(self, items: list[T], order_by: str | None = None, direction: str | None = None) -> list[T]:
        """Ordenação estável; valores None ficam sempre no fim."""
        if order_by is None or order_by not in self.sort_fields:
            order_by, direction = self.default_order
        reverse = direction == "desc"

        present = [item for item in items if self.value_of(item, order_by) is not None]
        missing = [item for item in items if self.value_of(item, order_by) is None]
        key = self.sort_keys.get(order_by, _normalize)
        present.sort(key=lambda item: key(self.value_of(item, order_by)), reverse=reverse)
        return present + missing

    def filter(self, items: Sequence[T], params: ListParams) -> list[T]:
        return [
            item
            for item in items
            if self.matches_search(item, params.search) and self.matches_filters(item, params.filters)
        ]

    def apply(self, items: Sequence[T], params: ListParams) -> tuple[list[T], int]:
        """Aplica busca, filtros, ordenação e paginação.

        Retorna ``(itens da página, total filtrado)``.
        """
        filtered = self.filter(items, params)
        ordered = self.sort(filtered, params.order_by, params.order_direction)
        total = len(ordered)

        if params.page_size:
            page = max(params.page, 1)
            offset = (page - 1) * params.page_size
            ordered = ordered[offset : offset + params.page_size]

        return ordered, total


def page_count(total: int, page_size: int | None) -> int:
    if not page_size:
        return 1
    return max(math.ceil(total / page_size), 1)
