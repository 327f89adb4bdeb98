"""Cliente HTTP da API de estoque."""

import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_ERROR = "Erro inesperado. Tente novamente."

RESOURCES = (
    "empresas",
    "lojas",
    "produtos",
    "categorias",
    "fornecedores",
    "materias-primas",
    "estoque",
    "movimentacoes",
    "usuarios",
    "alertas",
)


class ApiError(Exception):
    """Erro retornado pela API (ou de rede)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _error_message(response: httpx.Response) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        return response.text or DEFAULT_ERROR
    if isinstance(detail, list):
        # Erros de validação do FastAPI
        return "; ".join(str(item.get("msg", item)) for item in detail) or DEFAULT_ERROR
    return str(detail) if detail else DEFAULT_ERROR


class ApiClient:
    """Wrapper fino sobre ``httpx.Client`` com o token de acesso atual.

    ``http`` permite injetar um cliente já configurado (ex.: ``TestClient``).
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        http: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.access_token: Optional[str] = None
        self.refresh_token: Optional[str] = None

    def close(self) -> None:
        self.http.close()

    def request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {}) or {}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        try:
            response = self.http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Falha de comunicação com a API: {e}")
            raise ApiError(str(e) or DEFAULT_ERROR) from e

        if response.status_code >= 400:
            raise ApiError(_error_message(response), response.status_code)
        if response.headers.get("content-type", "").startswith("application/json"):
            return response.json()
        return response.text

    def get(self, path: str, **params) -> Any:
        params = {k: v for k, v in params.items() if v is not None}
        return self.request("GET", path, params=params)

    def post(self, path: str, data: Optional[dict] = None) -> Any:
        return self.request("POST", path, json=data)

    def put(self, path: str, data: Optional[dict] = None) -> Any:
        return self.request("PUT", path, json=data)

    # === Autenticação ===

    def _store_tokens(self, data: dict) -> dict:
        self.access_token = data["access_token"]
        self.refresh_token = data["refresh_token"]
        return data

    def login(self, email: str, password: str) -> dict:
        return self._store_tokens(self.post("/auth/login", {"email": email, "password": password}))

    def register(self, email: str, password: str, full_name: Optional[str] = None) -> dict:
        payload = {"email": email, "password": password, "full_name": full_name}
        return self._store_tokens(self.post("/auth/register", payload))

    def refresh(self, refresh_token: Optional[str] = None) -> dict:
        token = refresh_token or self.refresh_token
        return self._store_tokens(self.post("/auth/refresh", {"refresh_token": token}))

    def logout(self) -> None:
        try:
            if self.refresh_token:
                self.post("/auth/logout", {"refresh_token": self.refresh_token})
        finally:
            self.access_token = None
            self.refresh_token = None

    def me(self) -> dict:
        return self.get("/auth/me")

    # === Recursos ===

    def list(self, resource: str, **params) -> dict:
        return self.get(f"/{resource}/", **params)

    def create(self, resource: str, data: dict) -> dict:
        return self.post(f"/{resource}/", data)

    def update(self, resource: str, record_id: int, data: dict) -> dict:
        return self.put(f"/{resource}/{record_id}", data)

    def delete(self, resource: str, record_id: int) -> dict:
        return self.request("DELETE", f"/{resource}/{record_id}")

    def dashboard(self, empresa_id: Optional[int] = None) -> dict:
        return self.get("/dashboard/", empresa_id=empresa_id)

    def relatorio(self, tipo: str, **filters) -> dict:
        return self.get(f"/relatorios/{tipo}", **filters)

    def relatorio_csv(self, tipo: str, **filters) -> str:
        return self.get(f"/relatorios/{tipo}/csv", **filters)

    # === Configurações ===

    def empresas_selecao(self) -> dict:
        return self.get("/configuracoes/empresas")

    def selecionar_empresa(self, empresa_id: int) -> dict:
        return self.put("/configuracoes/empresa-selecionada", {"empresa_id": empresa_id})

    def preferencias(self) -> dict:
        return self.get("/configuracoes/preferencias")

    def atualizar_preferencias(self, **fields) -> dict:
        return self.put("/configuracoes/preferencias", fields)

    def lookups(self) -> dict:
        return self.get("/configuracoes/lookups")
