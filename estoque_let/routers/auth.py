"""Router para autenticação, sessão e perfil."""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, EmailStr, Field, field_validator
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.exc import SQLAlchemyError

from ..config import settings
from ..database import DbSession
from ..models import AuthUser, Usuario
from ..schemas import PerfilOut, UsuarioOut
from ..services.auth import AuthService, decode_token, permissions_for, placeholder_profile

logger = logging.getLogger(__name__)
router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
security = HTTPBearer(auto_error=False)


# =============================================================================
# SCHEMAS
# =============================================================================


class LoginRequest(BaseModel):
    """Schema para login."""

    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class RegisterRequest(LoginRequest):
    """Schema para cadastro."""

    full_name: Optional[str] = Field(None, max_length=255)


class RefreshRequest(BaseModel):
    """Schema para refresh de token."""

    refresh_token: str


class TokenResponse(BaseModel):
    """Schema de resposta com tokens."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResponse(TokenResponse):
    """Schema de resposta do login."""

    user: PerfilOut


# =============================================================================
# DEPENDÊNCIAS
# =============================================================================


@dataclass
class CurrentUser:
    """Identidade autenticada e seu perfil (``None`` se indisponível)."""

    identity: AuthUser
    profile: Optional[Usuario]

    @property
    def nivel_acesso(self) -> str:
        return self.profile.nivel_acesso if self.profile is not None else "funcionario"

    @property
    def permissions(self) -> list[str]:
        return permissions_for(self.nivel_acesso)

    def has_any_permission(self, *codes: str) -> bool:
        return any(code in self.permissions for code in codes)


def perfil_out(profile: Usuario) -> PerfilOut:
    data = UsuarioOut.model_validate(profile).model_dump()
    return PerfilOut(**data, permissions=permissions_for(profile.nivel_acesso))


def load_profile(auth_service: AuthService, user: AuthUser) -> Optional[Usuario]:
    """Busca (ou cria) o perfil; falhas de banco degradam para ``None``."""
    try:
        return auth_service.ensure_profile(user)
    except SQLAlchemyError as e:
        auth_service.db.rollback()
        logger.exception(f"Falha ao carregar perfil de {user.email}: {e}")
        return None


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: DbSession = None,
) -> CurrentUser:
    """Obtém o usuário atual a partir do token JWT."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token de autenticação não fornecido",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(credentials.credentials)
    if not payload or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token inválido ou expirado",
            headers={"WWW-Authenticate": "Bearer"},
        )

    auth_service = AuthService(db)
    user = auth_service.get_user_by_id(int(payload.get("sub", 0)))
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuário não encontrado ou inativo",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return CurrentUser(identity=user, profile=load_profile(auth_service, user))


def require_permission(*permissions: str):
    """Dependency factory para verificar permissões."""

    def permission_checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not user.has_any_permission(*permissions):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permissão negada")
        return user

    return permission_checker


def require_profile(user: CurrentUser = Depends(get_current_user)) -> Usuario:
    """Perfil obrigatório (ex.: autoria de movimentações)."""
    if user.profile is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Perfil do usuário indisponível",
        )
    return user.profile


def _client_info(request: Request) -> tuple[Optional[str], Optional[str]]:
    return request.headers.get("user-agent"), request.client.host if request.client else None


def _login_response(auth_service: AuthService, user: AuthUser, request: Request) -> LoginResponse:
    device_info, ip_address = _client_info(request)
    access_token, refresh_token = auth_service.create_session(user, device_info, ip_address)
    profile = load_profile(auth_service, user)
    perfil = perfil_out(profile) if profile is not None else PerfilOut(**placeholder_profile(user.email))
    return LoginResponse(access_token=access_token, refresh_token=refresh_token, user=perfil)


# =============================================================================
# ENDPOINTS DE AUTENTICAÇÃO
# =============================================================================


@router.post("/register", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
def register(request: Request, data: RegisterRequest, db: DbSession):
    """Cria a conta e já inicia a sessão."""
    auth_service = AuthService(db)
    if auth_service.get_user_by_email(data.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email já cadastrado")

    user = auth_service.register(data.email, data.password, data.full_name)
    return _login_response(auth_service, user, request)


@router.post("/login", response_model=LoginResponse)
@limiter.limit("10/minute")
def login(request: Request, data: LoginRequest, db: DbSession):
    """Autentica um usuário e retorna tokens."""
    auth_service = AuthService(db)
    user = auth_service.authenticate(data.email, data.password)

    if not user:
        logger.info(f"Login falhou para {data.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email ou senha incorretos",
        )

    return _login_response(auth_service, user, request)


@router.post("/refresh", response_model=TokenResponse)
@limiter.limit("30/minute")
def refresh_token(request: Request, data: RefreshRequest, db: DbSession):
    """Renova os tokens usando o refresh token."""
    result = AuthService(db).refresh_session(data.refresh_token)

    if not result:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token inválido ou expirado",
        )

    access_token, new_refresh_token = result
    return TokenResponse(access_token=access_token, refresh_token=new_refresh_token)


@router.post("/logout")
def logout(data: RefreshRequest, db: DbSession):
    """Encerra a sessão do refresh token."""
    AuthService(db).logout(data.refresh_token)
    return {"message": "Logout realizado"}


@router.get("/me", response_model=PerfilOut)
def get_me(user: CurrentUser = Depends(get_current_user)):
    """Retorna o perfil do usuário autenticado."""
    if user.profile is None:
        return PerfilOut(**placeholder_profile(user.identity.email))
    return perfil_out(user.profile)
