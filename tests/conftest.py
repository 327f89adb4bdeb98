"""Configuração de fixtures para testes."""

import os

# Configuração mínima antes de importar a aplicação
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "chave-de-teste-nao-usar-em-producao")
os.environ["ENV"] = "test"
os.environ["REALTIME_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from estoque_let.database import Base, get_db
from estoque_let.main import app


# Banco de dados em memória para testes
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_EMAIL = "admin@grupolet.com"
FUNCIONARIO_EMAIL = "operador@grupolet.com"
SENHA = "senha123"


@pytest.fixture(scope="function")
def db_session():
    """Cria uma sessão de banco de dados para testes."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Cria um cliente de teste com banco de dados isolado."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _bearer(response) -> dict:
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    """Primeiro cadastro do sistema: administrador geral."""
    response = client.post(
        "/auth/register",
        json={"email": ADMIN_EMAIL, "password": SENHA, "full_name": "Administrador"},
    )
    return _bearer(response)


@pytest.fixture
def funcionario_headers(client, auth_headers):
    """Cadastro posterior ao administrador: nível funcionário."""
    response = client.post(
        "/auth/register",
        json={"email": FUNCIONARIO_EMAIL, "password": SENHA, "full_name": "Operador de Caixa"},
    )
    return _bearer(response)


@pytest.fixture
def empresa(client, auth_headers):
    """Empresa ativa criada pela API."""
    response = client.post(
        "/empresas/",
        json={
            "nome": "GRUPO LET",
            "cnpj": "11.222.333/0001-81",
            "endereco": "Av. Paulista, 1000",
            "telefone": "(11) 3000-0000",
        },
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def _create_loja(client, headers, empresa_id, nome, codigo):
    response = client.post(
        "/lojas/",
        json={"nome": nome, "codigo": codigo, "endereco": "Rua Principal, 123", "empresa_id": empresa_id},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def loja(client, auth_headers, empresa):
    return _create_loja(client, auth_headers, empresa["id"], "Loja Centro", "LJ-001")


@pytest.fixture
def loja_shopping(client, auth_headers, empresa):
    return _create_loja(client, auth_headers, empresa["id"], "Loja Shopping", "LJ-002")


@pytest.fixture
def criar_produto(client, auth_headers, empresa):
    """Factory de produtos da empresa de teste."""

    def factory(nome="Smartphone XYZ", codigo="PHONE-001", categoria="Eletrônicos", preco=100.0, **extra):
        payload = {
            "nome": nome,
            "codigo": codigo,
            "categoria": categoria,
            "preco": preco,
            "valor_unitario": extra.pop("valor_unitario", 60.0),
            "empresa_id": empresa["id"],
            **extra,
        }
        response = client.post("/produtos/", json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return factory


@pytest.fixture
def produto(criar_produto):
    return criar_produto()
