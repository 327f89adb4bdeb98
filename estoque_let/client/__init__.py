"""Cliente Python da API de estoque."""

from .api import ApiClient, ApiError
from .state import AppState, AuthEvent, ClientContext, CompanySelection, SessionState, SessionStatus
from .storage import LocalStorage, initialize_mock_data

__all__ = [
    "ApiClient",
    "ApiError",
    "AppState",
    "AuthEvent",
    "ClientContext",
    "CompanySelection",
    "LocalStorage",
    "SessionState",
    "SessionStatus",
    "initialize_mock_data",
]
