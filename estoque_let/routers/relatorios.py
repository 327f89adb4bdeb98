"""Router para relatórios e exportação CSV."""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import settings
from ..database import DbSession
from ..services.reports import REPORTS, ReportService, to_csv
from .auth import CurrentUser, require_permission
from .common import unwrap
from .configuracoes import get_empresa_ativa

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


class ReportTypeOut(BaseModel):
    tipo: str
    titulo: str
    headers: List[str]


class ReportOut(ReportTypeOut):
    rows: List[list]
    total: int
    filename: str


class ReportFilters:
    """Filtros comuns dos relatórios (query string)."""

    def __init__(
        self,
        search: str | None = Query(None, description="Buscar por nome ou código do produto"),
        categoria: str | None = Query(None),
        data_inicio: date | None = Query(None),
        data_fim: date | None = Query(None),
    ):
        self.search = search
        self.categoria = None if categoria in (None, "", "todas") else categoria
        self.data_inicio = data_inicio
        self.data_fim = data_fim


def _build(db, tipo: str, empresa_id: Optional[int], filters: ReportFilters):
    return unwrap(
        ReportService(db).build(
            tipo,
            empresa_id=empresa_id,
            search=filters.search,
            categoria=filters.categoria,
            data_inicio=filters.data_inicio,
            data_fim=filters.data_fim,
        )
    )


@router.get("/", response_model=List[ReportTypeOut])
def list_report_types(user: CurrentUser = Depends(require_permission("relatorios.view"))):
    """Tipos de relatório disponíveis e seus cabeçalhos."""
    return [
        {"tipo": d.tipo, "titulo": d.titulo, "headers": list(d.headers)}
        for d in REPORTS.values()
    ]


@router.get("/{tipo}", response_model=ReportOut)
@limiter.limit("30/minute")
def get_report(
    request: Request,
    tipo: str,
    db: DbSession,
    filters: ReportFilters = Depends(),
    empresa_id: Optional[int] = Depends(get_empresa_ativa),
    user: CurrentUser = Depends(require_permission("relatorios.view")),
):
    """Gera o relatório em JSON (mesmas linhas do CSV)."""
    report = _build(db, tipo, empresa_id, filters)
    return {
        "tipo": report.tipo,
        "titulo": report.titulo,
        "headers": report.headers,
        "rows": report.rows,
        "total": len(report.rows),
        "filename": report.filename,
    }


@router.get("/{tipo}/csv")
@limiter.limit("10/minute")
def export_report_csv(
    request: Request,
    tipo: str,
    db: DbSession,
    filters: ReportFilters = Depends(),
    empresa_id: Optional[int] = Depends(get_empresa_ativa),
    user: CurrentUser = Depends(require_permission("relatorios.view")),
):
    """Exporta o relatório em CSV."""
    report = _build(db, tipo, empresa_id, filters)
    return Response(
        content=to_csv(report),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{report.filename}"'},
    )
