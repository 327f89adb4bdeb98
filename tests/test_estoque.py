"""Testes para saldos de estoque e movimentações."""

from datetime import date, timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from estoque_let.models import Alerta, Estoque, Movimentacao
from estoque_let.services.inventory import InventoryService


def _movimentar(client, headers, **payload):
    return client.post("/movimentacoes/", json=payload, headers=headers)


def _saldo(db_session, loja_id, produto_id):
    db_session.expire_all()
    estoque = (
        db_session.query(Estoque)
        .filter(Estoque.loja_id == loja_id, Estoque.produto_id == produto_id)
        .first()
    )
    return estoque.quantidade_atual if estoque is not None else None


@pytest.fixture
def estoque_variado(client, auth_headers, loja, criar_produto):
    """Quatro saldos, um em cada status."""
    limites = [
        ("PROD-A", 0),  # crítico
        ("PROD-B", 3),  # baixo
        ("PROD-C", 20),  # normal
        ("PROD-D", 60),  # alto
    ]
    registros = []
    for codigo, atual in limites:
        produto = criar_produto(nome=f"Produto {codigo}", codigo=codigo)
        response = client.post(
            "/estoque/",
            json={
                "loja_id": loja["id"],
                "produto_id": produto["id"],
                "quantidade_atual": atual,
                "quantidade_minima": 5,
                "quantidade_maxima": 50,
            },
            headers=auth_headers,
        )
        assert response.status_code == 201, response.text
        registros.append(response.json())
    return registros


class TestEstoque:
    """Testes para endpoints /estoque."""

    def test_create_com_status(self, estoque_variado):
        assert [r["status"] for r in estoque_variado] == ["critico", "baixo", "normal", "alto"]
        assert estoque_variado[0]["produto"]["codigo"] == "PROD-A"

    def test_create_duplicado(self, client, auth_headers, loja, estoque_variado):
        response = client.post(
            "/estoque/",
            json={"loja_id": loja["id"], "produto_id": estoque_variado[0]["produto_id"]},
            headers=auth_headers,
        )
        assert response.status_code == 409

    def test_list_resumo(self, client, auth_headers, estoque_variado):
        response = client.get("/estoque/", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 4
        assert data["resumo"] == {
            "total": 4,
            "critico": 1,
            "baixo": 1,
            "normal": 1,
            "alto": 1,
            "com_alerta": 2,
        }
        assert data["categorias"] == ["Eletrônicos"]

    def test_filtro_status_calculado(self, client, auth_headers, estoque_variado):
        response = client.get("/estoque/?status=critico", headers=auth_headers)
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["produto"]["codigo"] == "PROD-A"
        # O resumo considera todos os registros
        assert data["resumo"]["total"] == 4

    def test_filtro_abaixo_minimo(self, client, auth_headers, estoque_variado):
        response = client.get("/estoque/?status=abaixo_minimo", headers=auth_headers)
        assert {i["produto"]["codigo"] for i in response.json()["items"]} == {"PROD-A", "PROD-B"}

    def test_status_invalido(self, client, auth_headers, estoque_variado):
        response = client.get("/estoque/?status=esgotado", headers=auth_headers)
        assert response.status_code == 400

    def test_busca(self, client, auth_headers, estoque_variado):
        response = client.get("/estoque/?search=prod-c", headers=auth_headers)
        assert response.json()["total"] == 1

    def test_ordenacao_por_status_segue_gravidade(self, client, auth_headers, estoque_variado):
        response = client.get("/estoque/?order_by=status&order_direction=asc", headers=auth_headers)
        assert response.status_code == 200
        codigos = [i["produto"]["codigo"] for i in response.json()["items"]]
        assert codigos == ["PROD-A", "PROD-B", "PROD-C", "PROD-D"]

        response = client.get("/estoque/?order_by=status&order_direction=desc", headers=auth_headers)
        codigos = [i["produto"]["codigo"] for i in response.json()["items"]]
        assert codigos == ["PROD-D", "PROD-C", "PROD-B", "PROD-A"]

    def test_update_limites(self, client, auth_headers, estoque_variado):
        registro = estoque_variado[1]
        response = client.put(
            f"/estoque/{registro['id']}",
            json={"quantidade_minima": 2},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "normal"

    def test_funcionario_nao_edita(self, client, funcionario_headers, estoque_variado):
        response = client.put(
            f"/estoque/{estoque_variado[0]['id']}",
            json={"quantidade_minima": 1},
            headers=funcionario_headers,
        )
        assert response.status_code == 403


class TestSincronizar:
    """Testes para POST /estoque/sincronizar."""

    def test_cria_pares_faltantes(self, client, auth_headers, loja, loja_shopping, criar_produto, db_session):
        produto = criar_produto(preco=100.0)
        criar_produto(nome="Camiseta", codigo="SHIRT-001", preco=40.0)
        client.post("/estoque/", json={"loja_id": loja["id"], "produto_id": produto["id"]}, headers=auth_headers)

        response = client.post("/estoque/sincronizar", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["criados"] == 3

        novo = (
            db_session.query(Estoque)
            .filter(Estoque.loja_id == loja_shopping["id"], Estoque.produto_id == produto["id"])
            .one()
        )
        assert novo.quantidade_atual == 0
        assert novo.quantidade_minima == 2
        assert novo.quantidade_maxima == 100
        assert novo.valor_unitario == 65.0

        response = client.post("/estoque/sincronizar", headers=auth_headers)
        assert response.json()["criados"] == 0

    def test_ignora_inativos(self, client, auth_headers, loja, criar_produto):
        produto = criar_produto()
        client.put(f"/produtos/{produto['id']}", json={"status": "inativo"}, headers=auth_headers)

        response = client.post("/estoque/sincronizar", headers=auth_headers)
        assert response.json()["criados"] == 0


class TestMovimentacoes:
    """Testes para endpoints /movimentacoes."""

    def test_entrada_cria_estoque(self, client, auth_headers, loja, produto, db_session):
        response = _movimentar(
            client, auth_headers, tipo="entrada", loja_id=loja["id"], produto_id=produto["id"], quantidade=10
        )
        assert response.status_code == 201
        data = response.json()
        assert data["quantidade_anterior"] == 0
        assert data["motivo"] == "Movimentação de entrada"
        assert data["usuario"]["email"] == "admin@grupolet.com"
        assert _saldo(db_session, loja["id"], produto["id"]) == 10

    def test_saida_insuficiente_nao_altera(self, client, auth_headers, loja, produto, db_session):
        _movimentar(client, auth_headers, tipo="entrada", loja_id=loja["id"], produto_id=produto["id"], quantidade=5)

        response = _movimentar(
            client, auth_headers, tipo="saida", loja_id=loja["id"], produto_id=produto["id"], quantidade=8
        )
        assert response.status_code == 409
        assert "insuficiente" in response.json()["detail"]
        assert _saldo(db_session, loja["id"], produto["id"]) == 5
        assert db_session.query(Movimentacao).count() == 1

    def test_saida_sem_estoque(self, client, auth_headers, loja, produto, db_session):
        response = _movimentar(
            client, auth_headers, tipo="saida", loja_id=loja["id"], produto_id=produto["id"], quantidade=1
        )
        assert response.status_code == 409
        assert db_session.query(Estoque).count() == 0

    def test_ajuste_define_saldo(self, client, auth_headers, loja, produto, db_session):
        _movimentar(client, auth_headers, tipo="entrada", loja_id=loja["id"], produto_id=produto["id"], quantidade=30)
        response = _movimentar(
            client,
            auth_headers,
            tipo="ajuste",
            loja_id=loja["id"],
            produto_id=produto["id"],
            quantidade=12,
            motivo="Inventário",
        )
        assert response.status_code == 201
        assert response.json()["quantidade_anterior"] == 30
        assert _saldo(db_session, loja["id"], produto["id"]) == 12

    def test_transferencia(self, client, auth_headers, loja, loja_shopping, produto, db_session):
        _movimentar(client, auth_headers, tipo="entrada", loja_id=loja["id"], produto_id=produto["id"], quantidade=20)
        response = _movimentar(
            client,
            auth_headers,
            tipo="transferencia",
            loja_id=loja["id"],
            loja_destino_id=loja_shopping["id"],
            produto_id=produto["id"],
            quantidade=8,
        )
        assert response.status_code == 201
        assert _saldo(db_session, loja["id"], produto["id"]) == 12
        assert _saldo(db_session, loja_shopping["id"], produto["id"]) == 8

    def test_transferencia_destino_inexistente(self, client, auth_headers, loja, produto):
        _movimentar(client, auth_headers, tipo="entrada", loja_id=loja["id"], produto_id=produto["id"], quantidade=5)
        response = _movimentar(
            client,
            auth_headers,
            tipo="transferencia",
            loja_id=loja["id"],
            loja_destino_id=999,
            produto_id=produto["id"],
            quantidade=1,
        )
        assert response.status_code == 404

    def test_quantidade_zero(self, client, auth_headers, loja, produto):
        response = _movimentar(
            client, auth_headers, tipo="entrada", loja_id=loja["id"], produto_id=produto["id"], quantidade=0
        )
        assert response.status_code == 422

    def test_alerta_estoque_baixo_sem_duplicar(self, client, auth_headers, loja, produto, db_session):
        _movimentar(client, auth_headers, tipo="entrada", loja_id=loja["id"], produto_id=produto["id"], quantidade=10)
        _movimentar(client, auth_headers, tipo="saida", loja_id=loja["id"], produto_id=produto["id"], quantidade=8)

        alertas = db_session.query(Alerta).all()
        assert len(alertas) == 1
        assert alertas[0].tipo == "estoque"
        assert alertas[0].prioridade == "alto"
        assert alertas[0].status == "novo"

        _movimentar(client, auth_headers, tipo="saida", loja_id=loja["id"], produto_id=produto["id"], quantidade=2)
        assert db_session.query(Alerta).count() == 1

    def test_falha_no_alerta_mantem_movimentacao(self, client, auth_headers, loja, produto, db_session):
        """Erro ao gerar o alerta não transforma a movimentação confirmada em erro."""
        falha = OperationalError("INSERT INTO alertas", {}, Exception("database is locked"))
        with patch.object(InventoryService, "_check_low_stock", side_effect=falha):
            response = _movimentar(
                client, auth_headers, tipo="entrada", loja_id=loja["id"], produto_id=produto["id"], quantidade=1
            )

        assert response.status_code == 201, response.text
        assert response.json()["quantidade"] == 1
        assert db_session.query(Movimentacao).count() == 1
        assert _saldo(db_session, loja["id"], produto["id"]) == 1
        assert db_session.query(Alerta).count() == 0

    def test_funcionario_registra(self, client, funcionario_headers, loja, produto):
        response = _movimentar(
            client, funcionario_headers, tipo="entrada", loja_id=loja["id"], produto_id=produto["id"], quantidade=3
        )
        assert response.status_code == 201
        assert response.json()["usuario"]["email"] == "operador@grupolet.com"

    def test_list_filtros(self, client, auth_headers, loja, produto):
        _movimentar(client, auth_headers, tipo="entrada", loja_id=loja["id"], produto_id=produto["id"], quantidade=10)
        _movimentar(client, auth_headers, tipo="saida", loja_id=loja["id"], produto_id=produto["id"], quantidade=4)

        response = client.get("/movimentacoes/", headers=auth_headers)
        data = response.json()
        assert data["total"] == 2
        # Mais recente primeiro
        assert data["items"][0]["tipo"] == "saida"

        response = client.get("/movimentacoes/?tipo=entrada", headers=auth_headers)
        assert response.json()["total"] == 1

        depois = date.today() + timedelta(days=2)
        response = client.get(f"/movimentacoes/?data_inicio={depois}", headers=auth_headers)
        assert response.json()["total"] == 0

    def test_periodo_invertido(self, client, auth_headers, loja):
        response = client.get(
            "/movimentacoes/?data_inicio=2024-02-01&data_fim=2024-01-01",
            headers=auth_headers,
        )
        assert response.status_code == 400
