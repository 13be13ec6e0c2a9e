"""
Kafka producer used as the change event sink.
"""

import json
from typing import Dict, Any, Optional

from kafka import KafkaProducer
from kafka.errors import KafkaError

from shared.logging import get_logger
from shared.errors import RecordServiceException


class KafkaEventSink:
    """Publishes change events to Kafka."""

    def __init__(self, bootstrap_servers: str, send_timeout: float = 10.0):
        self.bootstrap_servers = bootstrap_servers
        self.send_timeout = send_timeout
        self.logger = get_logger("records.events.kafka")
        self.producer: Optional[KafkaProducer] = None

    def start(self):
        """Start the Kafka producer."""
        try:
            self.producer = KafkaProducer(
                bootstrap_servers=self.bootstrap_servers,
                value_serializer=lambda x: json.dumps(x).encode('utf-8'),
                key_serializer=lambda x: x.encode('utf-8') if x else None,
                acks='all',
                retries=3,
                batch_size=16384,
                linger_ms=10,
                compression_type='gzip'
            )

            self.logger.info("Kafka producer started")

        except Exception as e:
            self.logger.error("Failed to start Kafka producer", error=str(e))
            raise RecordServiceException("KAFKA_PRODUCER_START_FAILED", str(e)) from e

    def stop(self):
        """Stop the Kafka producer."""
        if self.producer:
            self.producer.flush()
            self.producer.close()
            self.producer = None
            self.logger.info("Kafka producer stopped")

    def send(self, topic: str, key: Optional[str], value: Dict[str, Any]):
        """Send a message and wait for the broker acknowledgement.

        Raises on failure; the notifier running this call decides what to do.
        """
        if not self.producer:
            raise RecordServiceException("KAFKA_PRODUCER_NOT_STARTED", "Producer not started")

        future = self.producer.send(topic=topic, value=value, key=key)
        try:
            record_metadata = future.get(timeout=self.send_timeout)
        except KafkaError as e:
            raise RecordServiceException("KAFKA_SEND_FAILED", str(e), details={"topic": topic}) from e

        self.logger.debug(
            "Message sent successfully",
            topic=topic,
            partition=record_metadata.partition,
            offset=record_metadata.offset
        )


class LoggingEventSink:
    """Event sink that only logs; used when no broker is configured."""

    def __init__(self):
        self.logger = get_logger("records.events.log_sink")

    def start(self):
        self.logger.info("Kafka disabled, change events will be logged only")

    def stop(self):
        pass

    def send(self, topic: str, key: Optional[str], value: Dict[str, Any]):
        self.logger.info("Change event", topic=topic, key=key, payload=value)
