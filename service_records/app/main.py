"""
Records service: patients persisted locally, users proxied from a remote API.
"""

from typing import Dict, List, Optional

import httpx
from fastapi import Path, Response

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from .adapters.user_api_client import UserApiClient
from .caching.user_cache import UserCacheStore
from .events.kafka_sink import KafkaEventSink, LoggingEventSink
from .events.notifier import EventNotifier, EventSink
from .patients.models import PatientFields, PatientRecord
from .patients.repository import PatientRepository
from .patients.service import PatientService
from .users.models import UserDraft, UserRecord
from .users.service import UserService

SERVICE_NAME = "records"
DEFAULT_PORT = 8080


class RecordsService(BaseService):
    """Records service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        user_api_transport: Optional[httpx.BaseTransport] = None,
        event_sink: Optional[EventSink] = None,
    ):
        super().__init__(SERVICE_NAME, DEFAULT_PORT, config=config)

        self.user_api_client = UserApiClient(
            self.config.user_api_url,
            timeout=self.config.user_api_timeout,
            retry_attempts=self.config.user_api_retry_attempts,
            failure_threshold=self.config.circuit_failure_threshold,
            recovery_timeout=self.config.circuit_recovery_timeout,
            transport=user_api_transport,
            metrics=self.metrics,
        )
        self.user_cache = UserCacheStore()
        if event_sink is None:
            event_sink = (
                KafkaEventSink(self.config.kafka_bootstrap)
                if self.config.kafka_enabled else LoggingEventSink()
            )
        self.notifier = EventNotifier(
            event_sink,
            self.config.user_events_topic,
            max_workers=self.config.event_workers,
            metrics=self.metrics,
        )
        self.user_service = UserService(self.user_api_client, self.user_cache, self.notifier, metrics=self.metrics)

        self.patient_repository = PatientRepository(self.config.database_url)
        self.patient_service = PatientService(self.patient_repository)

        self._setup_records_routes()

    def startup(self):
        self.patient_repository.start()
        self.notifier.start()
        self.logger.info("Records service started", user_api_url=self.config.user_api_url)

    def shutdown(self):
        self.notifier.shutdown(wait=True)
        self.user_cache.evict_all_mappings()
        self.user_api_client.close()
        self.patient_repository.stop()
        self.logger.info("Records service stopped")

    def _check_dependencies(self) -> Dict[str, str]:
        return {
            "patient_store": "ok" if self.patient_repository.engine is not None else "stopped",
            "user_api": self.user_api_client.circuit_breaker.get_state()["state"],
        }

    def _setup_records_routes(self):
        """Set up user and patient routes."""

        @self.app.get("/")
        def root():
            """Root endpoint."""
            return {
                "service": SERVICE_NAME,
                "message": "Records Service - patients and users",
                "version": "1.0.0",
                "cache": self.user_cache.stats(),
            }

        # Users (proxied, cached)

        @self.app.get("/api/v1/users", response_model=List[UserRecord],
                      response_model_exclude_none=True, tags=["users"])
        def get_all_users():
            """Get all users."""
            self.logger.info("REST request to get all users")
            return self.user_service.get_all_users()

        @self.app.get("/api/v1/users/{user_id}", response_model=UserRecord,
                      response_model_exclude_none=True, tags=["users"])
        def get_user(user_id: int = Path(..., description="ID of user to be retrieved")):
            """Get a user by id."""
            self.logger.info("REST request to get user", user_id=user_id)
            return self.user_service.get_user(user_id)

        @self.app.post("/api/v1/users", response_model=UserRecord, status_code=201,
                       response_model_exclude_none=True, tags=["users"])
        def create_user(user: UserDraft):
            """Create a new user."""
            self.logger.info("REST request to save user")
            return self.user_service.create_user(user)

        @self.app.put("/api/v1/users/{user_id}", response_model=UserRecord,
                      response_model_exclude_none=True, tags=["users"])
        def update_user(user: UserDraft, user_id: int = Path(..., description="ID of user to be updated")):
            """Update an existing user."""
            self.logger.info("REST request to update user", user_id=user_id)
            return self.user_service.update_user(user_id, user)

        @self.app.delete("/api/v1/users/{user_id}", status_code=204, tags=["users"])
        def delete_user(user_id: int = Path(..., description="ID of user to be deleted")):
            """Delete a user."""
            self.logger.info("REST request to delete user", user_id=user_id)
            self.user_service.delete_user(user_id)
            return Response(status_code=204)

        # Patients (local store)

        @self.app.get("/api/v1/patients", response_model=List[PatientRecord], tags=["patients"])
        def get_all_patients():
            """Get all patients."""
            return self.patient_service.get_all_patients()

        @self.app.get("/api/v1/patients/{patient_id}", response_model=PatientRecord, tags=["patients"])
        def get_patient(patient_id: int = Path(..., description="ID of patient to be retrieved")):
            """Get a patient by id."""
            return self.patient_service.get_patient(patient_id)

        @self.app.post("/api/v1/patients", response_model=PatientRecord, status_code=201, tags=["patients"])
        def create_patient(patient: PatientFields):
            """Create a new patient."""
            return self.patient_service.create_patient(patient)

        @self.app.put("/api/v1/patients/{patient_id}", response_model=PatientRecord, tags=["patients"])
        def update_patient(patient: PatientFields,
                           patient_id: int = Path(..., description="ID of patient to be updated")):
            """Update an existing patient."""
            return self.patient_service.update_patient(patient_id, patient)

        @self.app.delete("/api/v1/patients/{patient_id}", status_code=204, tags=["patients"])
        def delete_patient(patient_id: int = Path(..., description="ID of patient to be deleted")):
            """Delete a patient; deleting an unknown id succeeds."""
            self.patient_service.delete_patient(patient_id)
            return Response(status_code=204)


def create_app(config: Optional[ServiceConfig] = None):
    """Create the FastAPI application."""
    return RecordsService(config).app


def main():
    RecordsService(get_config(SERVICE_NAME, DEFAULT_PORT)).run()


if __name__ == "__main__":
    main()
