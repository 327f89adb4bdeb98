"""Estado do cliente: sessão, empresa selecionada e interface.

Cada objeto é dono de um único assunto e recebe o ``ApiClient`` e o
``LocalStorage`` explicitamente; ``ClientContext`` agrupa os três.
"""

import logging
import re
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .api import ApiClient, ApiError
from .storage import LocalStorage

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
ERROR_CLEAR_SECONDS = 5.0

PLACEHOLDER_NOME = "Usuário Padrão"


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


class SessionStatus(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ERROR = "error"


def placeholder_profile(email: Optional[str]) -> dict:
    return {
        "id": None,
        "nome": PLACEHOLDER_NOME,
        "email": email,
        "cargo": "Funcionário",
        "nivel_acesso": "funcionario",
        "status": "ativo",
        "placeholder": True,
    }


# =============================================================================
# SESSÃO
# =============================================================================


class SessionState:
    """Sessão autenticada e perfil do usuário."""

    STORAGE_KEY = "auth-session"

    def __init__(
        self,
        api: ApiClient,
        storage: Optional[LocalStorage] = None,
        error_timeout: float = ERROR_CLEAR_SECONDS,
    ):
        self.api = api
        self.storage = storage or LocalStorage()
        self.error_timeout = error_timeout
        self.status = SessionStatus.UNAUTHENTICATED
        self.user: Optional[dict] = None
        self.error: Optional[str] = None
        self._listeners: list[Callable[[AuthEvent, Optional[dict]], None]] = []
        self._error_timer: Optional[threading.Timer] = None

    @property
    def is_authenticated(self) -> bool:
        return self.status == SessionStatus.AUTHENTICATED

    @property
    def is_loading(self) -> bool:
        return self.status == SessionStatus.LOADING

    # --- listeners ---

    def on_auth_state_change(self, callback: Callable[[AuthEvent, Optional[dict]], None]) -> Callable[[], None]:
        """Registra um listener; retorna a função que cancela o registro."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _emit(self, event: AuthEvent) -> None:
        for callback in list(self._listeners):
            callback(event, self.user)

    # --- erro com limpeza automática ---

    def _set_error(self, message: str) -> None:
        self.error = message
        self.status = SessionStatus.ERROR
        if self._error_timer is not None:
            self._error_timer.cancel()
        self._error_timer = threading.Timer(self.error_timeout, self._expire_error, args=(message,))
        self._error_timer.daemon = True
        self._error_timer.start()

    def _expire_error(self, message: str) -> None:
        # Só limpa se nenhum erro mais novo o substituiu
        if self.error == message:
            self.clear_error()

    def clear_error(self) -> None:
        self.error = None
        if self.status == SessionStatus.ERROR:
            self.status = SessionStatus.UNAUTHENTICATED

    # --- sessão ---

    def _persist(self) -> None:
        if self.api.refresh_token:
            self.storage.set_json(self.STORAGE_KEY, {"refresh_token": self.api.refresh_token})
        else:
            self.storage.remove_item(self.STORAGE_KEY)

    def fetch_user_profile(self) -> dict:
        """Perfil do usuário; falhas degradam para o perfil padrão."""
        try:
            return self.api.me()
        except ApiError as e:
            logger.warning(f"Falha ao buscar perfil: {e.message}")
            email = self.user.get("email") if self.user else None
            return placeholder_profile(email)

    def initialize(self) -> bool:
        """Restaura a sessão persistida, se houver."""
        saved = self.storage.get_json(self.STORAGE_KEY)
        if not saved or not saved.get("refresh_token"):
            self.status = SessionStatus.UNAUTHENTICATED
            return False

        self.status = SessionStatus.LOADING
        try:
            self.api.refresh(saved["refresh_token"])
        except ApiError as e:
            logger.info(f"Sessão salva inválida: {e.message}")
            self.api.access_token = None
            self.api.refresh_token = None
            self._persist()
            self.status = SessionStatus.UNAUTHENTICATED
            return False

        self._persist()
        self.user = self.fetch_user_profile()
        self.status = SessionStatus.AUTHENTICATED
        self._emit(AuthEvent.SIGNED_IN)
        return True

    def login(self, email: str, password: str) -> bool:
        email = (email or "").strip().lower()
        if not email or not password:
            self._set_error("Preencha email e senha")
            return False
        if not EMAIL_PATTERN.fullmatch(email):
            self._set_error("Email inválido")
            return False

        self.status = SessionStatus.LOADING
        self.error = None
        try:
            data = self.api.login(email, password)
        except ApiError as e:
            self.user = None
            self._set_error(e.message)
            return False

        self._persist()
        self.user = data.get("user") or self.fetch_user_profile()
        self.status = SessionStatus.AUTHENTICATED
        self._emit(AuthEvent.SIGNED_IN)
        return True

    def register(self, email: str, password: str, full_name: Optional[str] = None) -> bool:
        email = (email or "").strip().lower()
        if not EMAIL_PATTERN.fullmatch(email):
            self._set_error("Email inválido")
            return False

        self.status = SessionStatus.LOADING
        try:
            data = self.api.register(email, password, full_name)
        except ApiError as e:
            self._set_error(e.message)
            return False

        self._persist()
        self.user = data.get("user") or self.fetch_user_profile()
        self.status = SessionStatus.AUTHENTICATED
        self._emit(AuthEvent.SIGNED_IN)
        return True

    def refresh(self) -> bool:
        try:
            self.api.refresh()
        except ApiError as e:
            logger.info(f"Refresh falhou: {e.message}")
            return False
        self._persist()
        self._emit(AuthEvent.TOKEN_REFRESHED)
        return True

    def logout(self) -> None:
        try:
            self.api.logout()
        except ApiError as e:
            logger.warning(f"Logout no servidor falhou: {e.message}")
        self._persist()
        self.user = None
        self.status = SessionStatus.UNAUTHENTICATED
        self._emit(AuthEvent.SIGNED_OUT)


# =============================================================================
# EMPRESA SELECIONADA
# =============================================================================


class CompanySelection:
    """Empresas disponíveis e a selecionada (persistida localmente)."""

    STORAGE_KEY = "company-storage"

    def __init__(self, api: ApiClient, storage: Optional[LocalStorage] = None):
        self.api = api
        self.storage = storage or LocalStorage()
        self.companies: list[dict] = []
        self.loading = False
        self.error: Optional[str] = None
        saved = self.storage.get_json(self.STORAGE_KEY, {}) or {}
        self.selected_company: Optional[dict] = saved.get("selected_company")

    def _persist(self) -> None:
        self.storage.set_json(self.STORAGE_KEY, {"selected_company": self.selected_company})

    def load_companies(self) -> list[dict]:
        """Carrega as empresas; mantém a seleção salva se ainda existir."""
        self.loading = True
        self.error = None
        try:
            data = self.api.empresas_selecao()
        except ApiError as e:
            self.error = e.message
            return self.companies
        finally:
            self.loading = False

        self.companies = data["empresas"]
        ids = {company["id"] for company in self.companies}
        if self.selected_company is None or self.selected_company.get("id") not in ids:
            self.selected_company = data.get("selecionada") or (self.companies[0] if self.companies else None)
        self._persist()
        return self.companies

    def set_selected_company(self, company: dict) -> bool:
        try:
            self.selected_company = self.api.selecionar_empresa(company["id"])
        except ApiError as e:
            self.error = e.message
            return False
        self._persist()
        return True

    @property
    def selected_id(self) -> Optional[int]:
        return self.selected_company["id"] if self.selected_company else None


# =============================================================================
# ESTADO DA INTERFACE
# =============================================================================


class AppState:
    """Flag da sidebar, loja atual e listas auxiliares em cache."""

    def __init__(self, api: ApiClient):
        self.api = api
        self.sidebar_collapsed = False
        self.current_loja: Optional[dict] = None
        self.lojas: list[dict] = []
        self.categorias: list[dict] = []
        self.fornecedores: list[dict] = []
        self.loading = {"lojas": False, "categorias": False, "fornecedores": False}
        self.error: Optional[str] = None

    def load_preferences(self) -> None:
        try:
            prefs = self.api.preferencias()
        except ApiError as e:
            self.error = e.message
            return
        self.sidebar_collapsed = prefs["sidebar_collapsed"]
        loja_id = prefs.get("loja_atual_id")
        self.current_loja = self.get_loja(loja_id) if loja_id else None

    def load_lookups(self) -> None:
        for key in self.loading:
            self.loading[key] = True
        try:
            data = self.api.lookups()
        except ApiError as e:
            self.error = e.message
            return
        finally:
            for key in self.loading:
                self.loading[key] = False

        self.lojas = data["lojas"]
        self.categorias = data["categorias"]
        self.fornecedores = data["fornecedores"]

    def toggle_sidebar(self) -> bool:
        self.sidebar_collapsed = not self.sidebar_collapsed
        try:
            self.api.atualizar_preferencias(sidebar_collapsed=self.sidebar_collapsed)
        except ApiError as e:
            self.error = e.message
        return self.sidebar_collapsed

    def set_current_loja(self, loja: Optional[dict]) -> None:
        self.current_loja = loja
        try:
            self.api.atualizar_preferencias(loja_atual_id=loja["id"] if loja else None)
        except ApiError as e:
            self.error = e.message

    @staticmethod
    def _find(items: list[dict], record_id: Any) -> Optional[dict]:
        return next((item for item in items if item.get("id") == record_id), None)

    def get_loja(self, loja_id: Any) -> Optional[dict]:
        return self._find(self.lojas, loja_id)

    def get_categoria(self, categoria_id: Any) -> Optional[dict]:
        return self._find(self.categorias, categoria_id)

    def get_fornecedor(self, fornecedor_id: Any) -> Optional[dict]:
        return self._find(self.fornecedores, fornecedor_id)


@dataclass
class ClientContext:
    """Contexto explícito da aplicação cliente."""

    api: ApiClient
    storage: LocalStorage
    session: SessionState
    company: CompanySelection
    app: AppState

    @classmethod
    def create(
        cls,
        base_url: str = "http://localhost:8000",
        storage_path: Optional[str] = None,
        api: Optional[ApiClient] = None,
    ) -> "ClientContext":
        api = api or ApiClient(base_url)
        storage = LocalStorage(storage_path)
        return cls(
            api=api,
            storage=storage,
            session=SessionState(api, storage),
            company=CompanySelection(api, storage),
            app=AppState(api),
        )
