"""Testes para classificação de status de estoque."""

from types import SimpleNamespace

import pytest

from estoque_let.services.stock_status import StatusEstoque, classify, progress, severity, summarize


class TestClassify:
    """Testes para ``classify``."""

    @pytest.mark.parametrize(
        "atual,minimo,maximo,esperado",
        [
            (0, 5, 50, StatusEstoque.CRITICO),
            (-2, 5, 50, StatusEstoque.CRITICO),
            (3, 5, 50, StatusEstoque.BAIXO),
            (5, 5, 50, StatusEstoque.BAIXO),
            (6, 5, 50, StatusEstoque.NORMAL),
            (50, 5, 50, StatusEstoque.ALTO),
            (80, 5, 50, StatusEstoque.ALTO),
        ],
    )
    def test_faixas(self, atual, minimo, maximo, esperado):
        assert classify(atual, minimo, maximo) == esperado

    def test_zero_com_minimo_zero_e_critico(self):
        """Saldo zerado é crítico mesmo sem mínimo configurado."""
        assert classify(0, 0, 0) == StatusEstoque.CRITICO

    def test_valores_literais(self):
        assert classify(20, 5, 50) == StatusEstoque.NORMAL
        assert classify(60, 5, 50) == StatusEstoque.ALTO

    @pytest.mark.parametrize("minimo,maximo", [(5, 50), (0, 0), (10, 5), (0, 10), (3, 3), (1, 2)])
    def test_gravidade_nao_diminui_com_saldo_menor(self, minimo, maximo):
        """Reduzir o saldo nunca deixa o status menos grave."""
        anterior = None
        for atual in range(70, -6, -1):
            gravidade = severity(classify(atual, minimo, maximo).value)
            if anterior is not None:
                assert gravidade <= anterior, (atual, minimo, maximo)
            anterior = gravidade


class TestProgress:
    """Testes para ``progress``."""

    def test_linear(self):
        assert progress(30, 10, 50) == 50.0

    def test_limitado(self):
        assert progress(0, 10, 50) == 0.0
        assert progress(90, 10, 50) == 100.0

    def test_extremos(self):
        assert progress(-10, 5, 50) == 0.0
        assert progress(1000, 5, 50) == 100.0

    @pytest.mark.parametrize("minimo,maximo", [(5, 50), (0, 10), (10, 5), (3, 3)])
    def test_nao_decresce_com_saldo_maior(self, minimo, maximo):
        valores = [progress(atual, minimo, maximo) for atual in range(-5, 71)]
        assert valores == sorted(valores)
        assert all(0.0 <= v <= 100.0 for v in valores)

    def test_faixa_degenerada(self):
        assert progress(7, 10, 10) == 50.0
        assert progress(7, 10, 5) == 50.0


class TestSummarize:
    """Testes para ``summarize``."""

    def test_contagens(self):
        registros = [
            SimpleNamespace(quantidade_atual=0, quantidade_minima=5, quantidade_maxima=50),
            SimpleNamespace(quantidade_atual=3, quantidade_minima=5, quantidade_maxima=50),
            SimpleNamespace(quantidade_atual=20, quantidade_minima=5, quantidade_maxima=50),
            SimpleNamespace(quantidade_atual=20, quantidade_minima=5, quantidade_maxima=50),
            SimpleNamespace(quantidade_atual=70, quantidade_minima=5, quantidade_maxima=50),
        ]
        resumo = summarize(registros)
        assert resumo == {
            "total": 5,
            "critico": 1,
            "baixo": 1,
            "normal": 2,
            "alto": 1,
            "com_alerta": 2,
        }

    def test_vazio(self):
        resumo = summarize([])
        assert resumo["total"] == 0
        assert resumo["com_alerta"] == 0


class TestSeverity:
    """Testes para ``severity``."""

    def test_ordem_por_gravidade(self):
        ordenados = sorted(["alto", "normal", "critico", "baixo"], key=severity)
        assert ordenados == ["critico", "baixo", "normal", "alto"]

    def test_status_desconhecido(self):
        with pytest.raises(ValueError):
            severity("esgotado")
