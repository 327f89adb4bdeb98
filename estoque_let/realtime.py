"""Notificações de alteração de tabelas via Redis pub/sub.

Cada escrita confirmada publica ``{"table", "event", "id"}`` no canal
``{table}-changes``. Clientes assinam com ``subscribe_to_table``.
"""

import json
import logging
from collections.abc import Callable
from typing import Any, Optional

from redis import Redis
from redis.exceptions import RedisError

from .config import settings

logger = logging.getLogger(__name__)

EVENTS = ("INSERT", "UPDATE", "DELETE")

_client: Optional[Redis] = None


def get_redis() -> Redis:
    """Cliente Redis compartilhado (criado sob demanda)."""
    global _client
    if _client is None:
        _client = Redis.from_url(settings.redis_url, decode_responses=True)
    return _client


def channel_name(table: str) -> str:
    return f"{table}-changes"


def publish_change(table: str, event: str, record_id: Any) -> bool:
    """Publica uma alteração. Falhas são registradas e nunca propagadas."""
    if not settings.realtime_enabled:
        return False

    payload = json.dumps({"table": table, "event": event, "id": record_id})
    try:
        get_redis().publish(channel_name(table), payload)
    except RedisError as e:
        logger.warning(f"Falha ao publicar alteração em {table}: {e}")
        return False
    return True


class TableSubscription:
    """Assinatura ativa de um canal; ``unsubscribe()`` encerra a thread."""

    def __init__(self, table: str, pubsub, thread):
        self.table = table
        self.pubsub = pubsub
        self.thread = thread

    def unsubscribe(self) -> None:
        self.thread.stop()
        self.pubsub.close()
        logger.info(f"Assinatura encerrada: {channel_name(self.table)}")


def subscribe_to_table(
    table: str,
    callback: Callable[[dict], None],
    client: Optional[Redis] = None,
) -> TableSubscription:
    """Assina o canal da tabela e chama ``callback(payload)`` a cada evento.

    As mensagens são consumidas numa thread em segundo plano.
    """
    pubsub = (client or get_redis()).pubsub(ignore_subscribe_messages=True)

    def handle(message: dict) -> None:
        try:
            payload = json.loads(message["data"])
        except (TypeError, ValueError):
            logger.warning(f"Mensagem inválida em {channel_name(table)}: {message.get('data')!r}")
            return
        callback(payload)

    pubsub.subscribe(**{channel_name(table): handle})
    thread = pubsub.run_in_thread(sleep_time=0.1, daemon=True)
    logger.info(f"Assinando {channel_name(table)}")
    return TableSubscription(table, pubsub, thread)
