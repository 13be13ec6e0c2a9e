"""
Patient service: CRUD over the local store, no caching.
"""

from typing import List

from shared.logging import get_logger
from shared.errors import NotFoundError
from .models import PatientFields, PatientRecord
from .repository import PatientRepository


class PatientService:
    """Directly persisted patient records."""

    def __init__(self, repository: PatientRepository):
        self.repository = repository
        self.logger = get_logger("records.patients.service")

    def create_patient(self, fields: PatientFields) -> PatientRecord:
        self.logger.info("Creating a new patient", last_name=fields.last_name)
        patient = self.repository.insert(fields)
        self.logger.info("Patient created", patient_id=patient.id)
        return patient

    def get_patient(self, patient_id: int) -> PatientRecord:
        self.logger.info("Fetching patient", patient_id=patient_id)
        patient = self.repository.find_by_id(patient_id)
        if patient is None:
            raise NotFoundError(f"Patient not found with id: {patient_id}")
        return patient

    def get_all_patients(self) -> List[PatientRecord]:
        self.logger.info("Fetching all patients")
        return self.repository.find_all()

    def update_patient(self, patient_id: int, fields: PatientFields) -> PatientRecord:
        self.logger.info("Updating patient", patient_id=patient_id)
        patient = self.repository.update(patient_id, fields)
        if patient is None:
            raise NotFoundError(f"Patient not found with id: {patient_id}")
        return patient

    def delete_patient(self, patient_id: int) -> None:
        """Delete a patient. Deleting a missing id is a no-op."""
        self.logger.info("Deleting patient", patient_id=patient_id)
        if not self.repository.delete_by_id(patient_id):
            self.logger.debug("Patient already absent, nothing to delete", patient_id=patient_id)
