"""Testes para o dashboard."""

from datetime import UTC, datetime
from types import SimpleNamespace

from estoque_let.services.dashboard import chart_series, low_stock


def _mov(tipo, quantidade, dia):
    return SimpleNamespace(tipo=tipo, quantidade=quantidade, data_hora=datetime(2024, 1, dia, 10, tzinfo=UTC), created_at=None)


class TestChartSeries:
    """Agrupamento diário de movimentações."""

    def test_agrupa_por_dia_na_ordem_de_chegada(self):
        movimentacoes = [
            _mov("saida", 3, 5),
            _mov("entrada", 10, 5),
            _mov("ajuste", 7, 4),
            _mov("entrada", 2, 3),
        ]
        assert chart_series(movimentacoes) == [
            {"data": "05/01/2024", "entradas": 10, "saidas": 3},
            {"data": "04/01/2024", "entradas": 0, "saidas": 0},
            {"data": "03/01/2024", "entradas": 2, "saidas": 0},
        ]

    def test_limite_de_dias(self):
        movimentacoes = [_mov("entrada", 1, dia) for dia in range(20, 10, -1)]
        serie = chart_series(movimentacoes)
        assert len(serie) == 7
        assert serie[0]["data"] == "20/01/2024"


class TestLowStock:
    def test_top_cinco_com_diferenca(self):
        estoques = [
            SimpleNamespace(
                id=i,
                quantidade_atual=i,
                quantidade_minima=10,
                produto=SimpleNamespace(nome=f"Produto {i}", codigo=f"P-{i}"),
                materia_prima=None,
                loja=SimpleNamespace(nome="Loja Centro"),
            )
            for i in range(8)
        ]
        itens = low_stock(estoques)
        assert len(itens) == 5
        assert itens[0]["diferenca"] == 10
        assert itens[0]["loja"] == "Loja Centro"


class TestDashboardEndpoint:
    """Testes para GET /dashboard."""

    def test_vazio(self, client, auth_headers):
        response = client.get("/dashboard/", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["stats"]["total_lojas"] == 0
        assert data["estoque_baixo"] == []
        assert data["grafico"] == []

    def test_com_movimentacoes(self, client, auth_headers, loja, produto):
        for tipo, quantidade in (("entrada", 10), ("saida", 9)):
            response = client.post(
                "/movimentacoes/",
                json={"tipo": tipo, "loja_id": loja["id"], "produto_id": produto["id"], "quantidade": quantidade},
                headers=auth_headers,
            )
            assert response.status_code == 201

        response = client.get("/dashboard/", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()

        assert data["stats"] == {
            "total_lojas": 1,
            "lojas_ativas": 1,
            "total_produtos": 1,
            "estoques_baixos": 1,
            "movimentacoes_semana": 2,
        }
        assert data["estoque_baixo"][0]["produto"] == produto["nome"]
        assert data["estoque_baixo"][0]["diferenca"] == 1

        hoje = datetime.now(UTC).strftime("%d/%m/%Y")
        assert data["grafico"] == [{"data": hoje, "entradas": 10, "saidas": 9}]

    def test_stats(self, client, auth_headers, loja):
        response = client.get("/dashboard/stats", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["lojas_ativas"] == 1
