"""Testes para notificações de alteração via Redis pub/sub."""

import json
from unittest.mock import MagicMock, patch

from redis.exceptions import ConnectionError as RedisConnectionError

from estoque_let.config import settings
from estoque_let.realtime import channel_name, publish_change, subscribe_to_table


class TestPublishChange:
    """Testes para publish_change."""

    def test_desabilitado(self):
        with patch("estoque_let.realtime.get_redis") as mock_redis:
            assert publish_change("estoque", "UPDATE", 1) is False
            mock_redis.assert_not_called()

    def test_publica_no_canal_da_tabela(self, monkeypatch):
        monkeypatch.setattr(settings, "realtime_enabled", True)
        with patch("estoque_let.realtime.get_redis") as mock_redis:
            assert publish_change("estoque", "UPDATE", 7) is True

        channel, payload = mock_redis.return_value.publish.call_args.args
        assert channel == "estoque-changes"
        assert json.loads(payload) == {"table": "estoque", "event": "UPDATE", "id": 7}

    def test_falha_do_redis_nao_propaga(self, monkeypatch):
        monkeypatch.setattr(settings, "realtime_enabled", True)
        with patch("estoque_let.realtime.get_redis") as mock_redis:
            mock_redis.return_value.publish.side_effect = RedisConnectionError("offline")
            assert publish_change("lojas", "INSERT", 1) is False


class TestSubscribeToTable:
    """Testes para subscribe_to_table."""

    def _subscribe(self, callback):
        redis_client = MagicMock()
        subscription = subscribe_to_table("movimentacoes", callback, client=redis_client)
        pubsub = redis_client.pubsub.return_value
        handler = pubsub.subscribe.call_args.kwargs[channel_name("movimentacoes")]
        return subscription, pubsub, handler

    def test_entrega_payload(self):
        recebidos = []
        _, pubsub, handler = self._subscribe(recebidos.append)

        handler({"data": json.dumps({"table": "movimentacoes", "event": "INSERT", "id": 3})})
        assert recebidos == [{"table": "movimentacoes", "event": "INSERT", "id": 3}]
        pubsub.run_in_thread.assert_called_once()

    def test_ignora_mensagem_invalida(self):
        recebidos = []
        _, _, handler = self._subscribe(recebidos.append)

        handler({"data": "nao-e-json"})
        assert recebidos == []

    def test_unsubscribe(self):
        subscription, pubsub, _ = self._subscribe(lambda payload: None)
        subscription.unsubscribe()

        pubsub.run_in_thread.return_value.stop.assert_called_once()
        pubsub.close.assert_called_once()


class TestPublicacaoNasEscritas:
    def test_criar_loja_publica(self, client, auth_headers, empresa, monkeypatch):
        monkeypatch.setattr(settings, "realtime_enabled", True)
        with patch("estoque_let.realtime.get_redis") as mock_redis:
            response = client.post(
                "/lojas/",
                json={"nome": "Loja Centro", "codigo": "LJ-001", "empresa_id": empresa["id"]},
                headers=auth_headers,
            )
        assert response.status_code == 201
        channels = [c.args[0] for c in mock_redis.return_value.publish.call_args_list]
        assert "lojas-changes" in channels
