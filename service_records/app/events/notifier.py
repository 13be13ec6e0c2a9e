"""
Fire-and-forget delivery of user change events.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Optional, Protocol

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .models import UserEvent


class EventSink(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...

    def send(self, topic: str, key: Optional[str], value: Dict[str, Any]) -> None: ...


class EventNotifier:
    """Hands change events to a background worker.

    ``notify`` never blocks on delivery and never raises: sink failures are
    logged and counted, and the triggering operation carries on.
    """

    def __init__(
        self,
        sink: EventSink,
        topic: str = "user-topic",
        *,
        max_workers: int = 1,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.sink = sink
        self.topic = topic
        self.metrics = metrics
        self.logger = get_logger("records.events.notifier")
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="user-events")

    def start(self):
        self.sink.start()

    def notify(self, event: UserEvent) -> Optional[Future]:
        try:
            return self._executor.submit(self._deliver, event)
        except Exception as e:
            self.logger.error(
                "Could not schedule change event",
                event_type=event.event_type.value,
                key=event.routing_key,
                error=str(e)
            )
            self._count(event, "dropped")
            return None

    def _deliver(self, event: UserEvent):
        key = event.routing_key
        try:
            self.logger.info("Sending user event", topic=self.topic, key=key, event_type=event.event_type.value)
            self.sink.send(self.topic, key, event.to_message())
        except Exception as e:
            self.logger.error(
                "Error sending user event",
                topic=self.topic,
                key=key,
                event_type=event.event_type.value,
                error=str(e),
                exc_info=e
            )
            self._count(event, "failed")
            return
        self._count(event, "sent")

    def _count(self, event: UserEvent, outcome: str):
        if self.metrics is not None:
            self.metrics.increment_counter(
                "events_published_total", event_type=event.event_type.value, outcome=outcome
            )

    def shutdown(self, wait: bool = True):
        """Drain pending deliveries, then stop the sink."""
        self._executor.shutdown(wait=wait)
        try:
            self.sink.stop()
        except Exception as e:
            self.logger.error("Error stopping event sink", error=str(e))
