# app/core/kafka_producer.py

import json
import logging
from typing import Optional

from kafka import KafkaProducer
from kafka.errors import KafkaError

from app.core.config import settings

logger = logging.getLogger(__name__)

_producer: Optional[KafkaProducer] = None


def _build_producer() -> KafkaProducer:
    return KafkaProducer(
        bootstrap_servers=settings.KAFKA_BOOTSTRAP_SERVERS,
        value_serializer=lambda v: json.dumps(v, default=str).encode("utf-8"),
        # Fail fast when the broker is unreachable during a request
        request_timeout_ms=5000,
    )


def get_kafka_singleton() -> Optional[KafkaProducer]:
    """
    Lazily create a process-wide producer for fire-and-forget publishing.
    Returns None when the broker cannot be reached.
    """
    global _producer
    if _producer is None:
        try:
            _producer = _build_producer()
        except KafkaError as e:
            logger.warning(f"Kafka producer unavailable: {e}")
            return None
    return _producer
