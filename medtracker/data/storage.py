"""Data storage manager for the medication tracker."""

import asyncio
import json
import re
from pathlib import Path
from typing import Optional

import aiofiles

from medtracker.utils import PatientExistsError, log_operation, logger

from .models import PatientData

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def patient_slug(patient_name: str) -> str:
    """Turn a patient name into a file-name-safe identifier.

    Examples:
        >>> patient_slug("Mary Ann O'Neil")
        'mary_ann_o_neil'
    """
    slug = _SLUG_RE.sub("_", patient_name.strip().lower()).strip("_")
    if not slug:
        raise ValueError(f"Patient name {patient_name!r} has no usable characters")
    return slug


class DataManager:
    """Manager for patient data storage using JSON files.

    Each patient has a separate JSON file stored in {data_dir}/{slug}.json.
    Nothing leaves the local machine. Uses atomic write pattern
    (write to temp file, then rename) for data integrity.
    """

    def __init__(self, data_dir: str = "data/patients"):
        """Initialize data manager.

        Args:
            data_dir: Directory to store patient data files
        """
        self.data_dir = Path(data_dir)
        # Serializes writes so concurrent saves never share the temp file
        self._write_lock = asyncio.Lock()
        self._ensure_data_dir()

    def _ensure_data_dir(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Data directory ensured: {self.data_dir}")

    def _get_patient_file_path(self, patient_name: str) -> Path:
        return self.data_dir / f"{patient_slug(patient_name)}.json"

    def _get_temp_file_path(self, patient_name: str) -> Path:
        return self.data_dir / f"{patient_slug(patient_name)}.json.tmp"

    def patient_exists(self, patient_name: str) -> bool:
        """Check if a data file exists for the patient."""
        return self._get_patient_file_path(patient_name).exists()

    async def get_patient_data(self, patient_name: str) -> Optional[PatientData]:
        """Load patient data from JSON file.

        A file that cannot be parsed is moved aside to ``<slug>.json.corrupt``
        so the records can still be recovered by hand.

        Args:
            patient_name: Patient name

        Returns:
            PatientData instance or None if file doesn't exist or is corrupted
        """
        file_path = self._get_patient_file_path(patient_name)

        if not file_path.exists():
            logger.debug(f"Patient file not found: {patient_name}")
            return None

        try:
            async with aiofiles.open(file_path, mode="r", encoding="utf-8") as f:
                content = await f.read()
            data = json.loads(content)
            patient_data = PatientData.from_dict(data)
            logger.debug(f"Loaded patient data: {patient_name}")
            return patient_data

        except (ValueError, KeyError, TypeError) as e:
            corrupt_path = file_path.with_name(file_path.name + ".corrupt")
            logger.error(
                f"Corrupted data file for patient {patient_name}: "
                f"{type(e).__name__}: {e}. Moving it to {corrupt_path.name}"
            )
            file_path.replace(corrupt_path)
            log_operation("corrupted_file_moved", patient=patient_name, path=str(corrupt_path))
            return None

    async def save_patient_data(self, patient_data: PatientData) -> None:
        """Save patient data to JSON file with atomic write.

        Args:
            patient_data: PatientData instance to save

        Raises:
            OSError: If save operation fails (temp file is cleaned up first)
        """
        patient_name = patient_data.patient_name
        file_path = self._get_patient_file_path(patient_name)
        temp_path = self._get_temp_file_path(patient_name)

        try:
            json_content = json.dumps(patient_data.to_dict(), ensure_ascii=False, indent=2)

            async with self._write_lock:
                async with aiofiles.open(temp_path, mode="w", encoding="utf-8") as f:
                    await f.write(json_content)

                # Atomic rename (replaces existing file)
                temp_path.replace(file_path)

            logger.debug(f"Saved patient data: {patient_name}")

        except Exception as e:
            logger.error(
                f"Error saving patient data for {patient_name}: {type(e).__name__}: {e}"
            )
            if temp_path.exists():
                temp_path.unlink()
            raise

    async def create_patient(self, patient_name: str, timezone_offset: str) -> PatientData:
        """Create new patient file with no medications.

        Raises:
            PatientExistsError: If the patient already has a data file
        """
        if self.patient_exists(patient_name):
            logger.warning(f"Attempted to create existing patient: {patient_name}")
            raise PatientExistsError(patient_name)

        patient_data = PatientData(
            patient_name=patient_name.strip(),
            timezone_offset=timezone_offset,
        )

        await self.save_patient_data(patient_data)
        logger.info(f"Created new patient: {patient_name} with timezone {timezone_offset}")

        return patient_data

    async def get_or_create_patient(self, patient_name: str, timezone_offset: str) -> PatientData:
        """Load the patient, creating an empty record on first use."""
        patient_data = await self.get_patient_data(patient_name)
        if patient_data is None:
            patient_data = await self.create_patient(patient_name, timezone_offset)
        return patient_data

    async def list_patients(self) -> list[str]:
        """Get sorted list of patient names (for scheduler and CLI).

        Files that cannot be parsed are logged and skipped.
        """
        names = []
        for file_path in sorted(self.data_dir.glob("*.json")):
            try:
                async with aiofiles.open(file_path, mode="r", encoding="utf-8") as f:
                    data = json.loads(await f.read())
                names.append(data["patient_name"])
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Skipping unreadable patient file {file_path.name}: {e}")

        logger.debug(f"Found {len(names)} patient(s)")
        return sorted(names, key=str.lower)

    async def delete_patient(self, patient_name: str) -> bool:
        """Delete patient data file.

        Returns:
            True if file was deleted, False if file didn't exist
        """
        file_path = self._get_patient_file_path(patient_name)

        if not file_path.exists():
            logger.debug(f"Patient file not found for deletion: {patient_name}")
            return False

        file_path.unlink()
        logger.info(f"Deleted patient data: {patient_name}")
        return True
