"""Serviço de autenticação, sessões e perfis."""

import hashlib
import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Optional

import bcrypt
import jwt
from sqlalchemy.orm import Session

from ..config import settings
from ..models import AuthSession, AuthUser, Usuario

logger = logging.getLogger(__name__)

# Configurações JWT
JWT_SECRET = settings.secret_key
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = settings.access_token_expire_minutes
REFRESH_TOKEN_EXPIRE_DAYS = settings.refresh_token_expire_days

PERFIL_PADRAO_NOME = "Usuário Padrão"
PERFIL_PADRAO_CARGO = "Funcionário"
PERFIL_PADRAO_NIVEL = "funcionario"


# =============================================================================
# PERMISSÕES POR NÍVEL DE ACESSO
# =============================================================================

PERMISSIONS = {
    "empresas.edit": "Criar, editar e excluir empresas",
    "lojas.edit": "Criar, editar e excluir lojas",
    "produtos.edit": "Gerenciar produtos, categorias, fornecedores e matérias-primas",
    "estoque.edit": "Ajustar limites e sincronizar estoque",
    "movimentacoes.create": "Registrar movimentações",
    "usuarios.view": "Visualizar usuários",
    "usuarios.edit": "Criar e editar usuários",
    "alertas.edit": "Criar e atualizar alertas",
    "relatorios.view": "Gerar e exportar relatórios",
}

NIVEL_PERMISSIONS = {
    "admin_geral": list(PERMISSIONS),
    "admin_loja": [code for code in PERMISSIONS if code != "empresas.edit"],
    "gerente": [
        "lojas.edit",
        "produtos.edit",
        "estoque.edit",
        "movimentacoes.create",
        "usuarios.view",
        "alertas.edit",
        "relatorios.view",
    ],
    "funcionario": ["movimentacoes.create", "alertas.edit", "relatorios.view"],
}


def permissions_for(nivel_acesso: Optional[str]) -> list[str]:
    return NIVEL_PERMISSIONS.get(nivel_acesso or PERFIL_PADRAO_NIVEL, [])


# =============================================================================
# FUNÇÕES DE HASH
# =============================================================================


BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def hash_token(token: str) -> str:
    """SHA-256 do refresh token (o banco nunca guarda o token em si)."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_token(nbytes: int = 32) -> str:
    return secrets.token_urlsafe(nbytes)


def _as_utc(value: datetime) -> datetime:
    # SQLite devolve datetimes sem timezone
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


# =============================================================================
# FUNÇÕES JWT
# =============================================================================


def create_access_token(user_id: int, email: str, nivel_acesso: str) -> str:
    """Cria um access token JWT."""
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "email": email,
        "nivel": nivel_acesso,
        "permissions": permissions_for(nivel_acesso),
        "type": "access",
        "exp": now + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
        "iat": now,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def create_refresh_token(user_id: int, session_id: int) -> str:
    """Cria um refresh token JWT."""
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "session_id": session_id,
        "jti": generate_token(),
        "type": "refresh",
        "exp": now + timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
        "iat": now,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decodifica e valida um token JWT."""
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


# =============================================================================
# SERVIÇO DE AUTENTICAÇÃO
# =============================================================================


class AuthService:
    """Serviço para operações de autenticação."""

    def __init__(self, db: Session):
        self.db = db

    def get_user_by_email(self, email: str) -> Optional[AuthUser]:
        return self.db.query(AuthUser).filter(AuthUser.email == email.strip().lower()).first()

    def get_user_by_id(self, user_id: int) -> Optional[AuthUser]:
        """Busca identidade ativa por ID."""
        return self.db.query(AuthUser).filter(AuthUser.id == user_id, AuthUser.is_active.is_(True)).first()

    def authenticate(self, email: str, password: str) -> Optional[AuthUser]:
        """Autentica por email e senha."""
        user = self.get_user_by_email(email)
        if not user or not user.is_active:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user

    def register(self, email: str, password: str, full_name: Optional[str] = None) -> AuthUser:
        """Cria identidade e perfil.

        O primeiro cadastro do sistema recebe ``admin_geral``.
        """
        email = email.strip().lower()
        primeiro = self.db.query(AuthUser.id).first() is None

        user = AuthUser(email=email, password_hash=hash_password(password), full_name=full_name)
        self.db.add(user)
        self.db.flush()

        if self.get_profile(email) is None:
            self.db.add(self._default_profile(user, "admin_geral" if primeiro else PERFIL_PADRAO_NIVEL))

        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Usuário registrado: {email}")
        return user

    def create_session(
        self,
        user: AuthUser,
        device_info: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> tuple[str, str]:
        """
        Cria uma nova sessão para o usuário.

        Retorna: (access_token, refresh_token)
        """
        session = AuthSession(
            auth_user_id=user.id,
            refresh_token_hash=hash_token(generate_token()),
            device_info=device_info,
            ip_address=ip_address,
            expires_at=datetime.now(UTC) + timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
        )
        self.db.add(session)
        self.db.flush()

        refresh_token = create_refresh_token(user.id, session.id)
        session.refresh_token_hash = hash_token(refresh_token)
        user.last_sign_in_at = datetime.now(UTC)

        access_token = create_access_token(user.id, user.email, self._nivel(user))
        self.db.commit()
        return access_token, refresh_token

    def refresh_session(self, refresh_token: str) -> Optional[tuple[str, str]]:
        """
        Renova uma sessão (o refresh token anterior deixa de valer).

        Retorna: (new_access_token, new_refresh_token) ou None se inválido
        """
        payload = decode_token(refresh_token)
        if not payload or payload.get("type") != "refresh":
            return None

        session_id = payload.get("session_id")
        user_id = int(payload.get("sub", 0))

        session = (
            self.db.query(AuthSession)
            .filter(
                AuthSession.id == session_id,
                AuthSession.auth_user_id == user_id,
                AuthSession.is_active.is_(True),
            )
            .first()
        )
        if not session or session.refresh_token_hash != hash_token(refresh_token):
            return None
        if _as_utc(session.expires_at) < datetime.now(UTC):
            return None

        user = self.get_user_by_id(user_id)
        if not user:
            return None

        new_refresh_token = create_refresh_token(user.id, session.id)
        session.refresh_token_hash = hash_token(new_refresh_token)
        session.last_used_at = datetime.now(UTC)
        session.expires_at = datetime.now(UTC) + timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS)

        access_token = create_access_token(user.id, user.email, self._nivel(user))
        self.db.commit()
        return access_token, new_refresh_token

    def logout(self, refresh_token: str) -> bool:
        """Invalida a sessão do refresh token."""
        payload = decode_token(refresh_token)
        if not payload or payload.get("type") != "refresh":
            return False

        session = (
            self.db.query(AuthSession)
            .filter(
                AuthSession.id == payload.get("session_id"),
                AuthSession.auth_user_id == int(payload.get("sub", 0)),
            )
            .first()
        )
        if session:
            session.is_active = False
            self.db.commit()
            return True
        return False

    # =========================================================================
    # PERFIL
    # =========================================================================

    def get_profile(self, email: str) -> Optional[Usuario]:
        return self.db.query(Usuario).filter(Usuario.email == email.strip().lower()).first()

    def ensure_profile(self, user: AuthUser) -> Usuario:
        """Busca o perfil pelo email; cria um perfil padrão se não existir."""
        profile = self.get_profile(user.email)
        if profile is not None:
            return profile

        profile = self._default_profile(user, PERFIL_PADRAO_NIVEL)
        self.db.add(profile)
        self.db.commit()
        self.db.refresh(profile)
        logger.info(f"Perfil padrão criado para {user.email}")
        return profile

    def _default_profile(self, user: AuthUser, nivel_acesso: str) -> Usuario:
        return Usuario(
            nome=user.full_name or user.email.split("@")[0],
            email=user.email,
            cargo=PERFIL_PADRAO_CARGO,
            nivel_acesso=nivel_acesso,
            status="ativo",
        )

    def _nivel(self, user: AuthUser) -> str:
        profile = self.get_profile(user.email)
        return profile.nivel_acesso if profile is not None else PERFIL_PADRAO_NIVEL


def placeholder_profile(email: str) -> dict:
    """Perfil exibido quando a busca do perfil falha."""
    return {
        "id": None,
        "nome": PERFIL_PADRAO_NOME,
        "email": email,
        "cargo": PERFIL_PADRAO_CARGO,
        "nivel_acesso": PERFIL_PADRAO_NIVEL,
        "status": "ativo",
        "placeholder": True,
        "permissions": permissions_for(PERFIL_PADRAO_NIVEL),
    }
