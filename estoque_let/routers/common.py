"""Utilitários compartilhados pelos routers."""

from typing import Any, Optional

from fastapi import HTTPException, status

from ..services.inventory import ApiResponse, ErrorCode
from ..services.listing import ListParams, ResourceList, page_count

ERROR_STATUS = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID: status.HTTP_400_BAD_REQUEST,
}


def unwrap(result: ApiResponse) -> Any:
    """Retorna ``data`` ou levanta HTTPException com a mensagem do envelope."""
    if result.ok:
        return result.data
    raise HTTPException(
        status_code=ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST),
        detail=result.error,
    )


def paginate(
    resource: ResourceList,
    items: list,
    page: int,
    page_size: int,
    order_by: Optional[str] = None,
    order_direction: str = "desc",
    filters: Optional[dict] = None,
    search: Optional[str] = None,
) -> dict:
    """Aplica o ``ResourceList`` e monta o payload de ``ListResponse``."""
    params = ListParams(
        search=search,
        filters=filters or {},
        order_by=order_by,
        order_direction=order_direction,
        page=page,
        page_size=page_size,
    )
    page_items, total = resource.apply(items, params)
    return {
        "items": page_items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "pages": page_count(total, page_size),
    }
