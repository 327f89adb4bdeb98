"""GRUPO LET - Estoque: aplicação principal FastAPI."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis import Redis
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import settings
from .database import Base, SessionLocal, engine
from .routers import (
    alertas_router,
    auth_router,
    categorias_router,
    configuracoes_router,
    dashboard_router,
    empresas_router,
    estoque_router,
    fornecedores_router,
    lojas_router,
    materias_primas_router,
    movimentacoes_router,
    produtos_router,
    relatorios_router,
    usuarios_router,
)
from .schemas import HealthResponse
from .services.demo_data import seed_demo_data

# === Logging ===

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# === Rate Limiter ===

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


# === Lifespan ===


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Gerencia o ciclo de vida da aplicação."""
    logger.info("Iniciando GRUPO LET - Estoque...")

    # Startup: criar tabelas (em produção, usar Alembic)
    if not settings.is_production:
        logger.info(f"Ambiente {settings.env}: criando tabelas...")
        Base.metadata.create_all(bind=engine)

    if settings.demo_mode:
        db = SessionLocal()
        try:
            seed_demo_data(db)
        finally:
            db.close()

    logger.info("API iniciada com sucesso!")
    yield

    # Shutdown
    logger.info("Encerrando GRUPO LET - Estoque...")


# === App ===

app = FastAPI(
    title=settings.app_name,
    description="API de gestão de estoque multi-empresa: lojas, produtos, saldos e movimentações",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# Rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# === Middleware ===

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


# === Exception Handlers ===


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Rotas inexistentes respondem com mensagem em português."""
    detail = exc.detail
    if exc.status_code == 404 and detail == "Not Found":
        detail = "Recurso não encontrado"
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler global para exceções não tratadas."""
    logger.exception(f"Erro não tratado: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Erro interno do servidor"
            if settings.is_production
            else str(exc)
        },
    )


# === Routers ===

app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(dashboard_router, prefix="/dashboard", tags=["dashboard"])
app.include_router(empresas_router, prefix="/empresas", tags=["empresas"])
app.include_router(lojas_router, prefix="/lojas", tags=["lojas"])
app.include_router(produtos_router, prefix="/produtos", tags=["produtos"])
app.include_router(categorias_router, prefix="/categorias", tags=["categorias"])
app.include_router(fornecedores_router, prefix="/fornecedores", tags=["fornecedores"])
app.include_router(materias_primas_router, prefix="/materias-primas", tags=["materias-primas"])
app.include_router(estoque_router, prefix="/estoque", tags=["estoque"])
app.include_router(movimentacoes_router, prefix="/movimentacoes", tags=["movimentacoes"])
app.include_router(relatorios_router, prefix="/relatorios", tags=["relatorios"])
app.include_router(usuarios_router, prefix="/usuarios", tags=["usuarios"])
app.include_router(alertas_router, prefix="/alertas", tags=["alertas"])
app.include_router(configuracoes_router, prefix="/configuracoes", tags=["configuracoes"])


# === Health Check ===


@app.get("/health", response_model=HealthResponse, tags=["health"])
def health_check() -> HealthResponse:
    """Verifica a saúde da aplicação e suas dependências."""
    # DB check
    db_ok = False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        db_ok = True
    except Exception as e:
        logger.warning(f"Health check DB falhou: {e}")

    # Redis check
    redis_ok = False
    try:
        r = Redis.from_url(settings.redis_url)
        r.ping()
        redis_ok = True
    except Exception as e:
        logger.warning(f"Health check Redis falhou: {e}")

    # Status geral
    if db_ok and redis_ok:
        status = "ok"
    elif db_ok or redis_ok:
        status = "degraded"
    else:
        status = "down"

    return HealthResponse(status=status, db=db_ok, redis=redis_ok, version=__version__)


@app.get("/", tags=["root"])
def root() -> dict:
    """Endpoint raiz com informações básicas da API."""
    return {
        "app": settings.app_name,
        "version": __version__,
        "docs": "/docs" if not settings.is_production else None,
        "health": "/health",
    }
