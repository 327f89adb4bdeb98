"""Routers module."""

from .alertas import router as alertas_router
from .auth import router as auth_router
from .categorias import router as categorias_router
from .configuracoes import router as configuracoes_router
from .dashboard import router as dashboard_router
from .empresas import router as empresas_router
from .estoque import router as estoque_router
from .fornecedores import router as fornecedores_router
from .lojas import router as lojas_router
from .materias_primas import router as materias_primas_router
from .movimentacoes import router as movimentacoes_router
from .produtos import router as produtos_router
from .relatorios import router as relatorios_router
from .usuarios import router as usuarios_router

__all__ = [
    "alertas_router",
    "auth_router",
    "categorias_router",
    "configuracoes_router",
    "dashboard_router",
    "empresas_router",
    "estoque_router",
    "fornecedores_router",
    "lojas_router",
    "materias_primas_router",
    "movimentacoes_router",
    "produtos_router",
    "relatorios_router",
    "usuarios_router",
]
