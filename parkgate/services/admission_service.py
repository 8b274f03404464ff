# parkgate/services/admission_service.py
"""
Admission control: validate / admit / release / history.

How it works:
  - validate looks up the scanned driver document and suggests enter or exit
  - admit reserves a slot, checks the plate is not already inside, and writes
    the active record plus its open history entry, all in one transaction
  - release removes the active record, archives it, closes the history entry
    and gives the slot back, all in one transaction
  - history returns the parking log for one facility-local calendar day

Every operation returns an AdmissionResult. Store failures are logged here and
surface as INTERNAL_ERROR; nothing is raised past this module.
"""

from typing import Callable, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from parkgate.models.vehicle_record import VehicleIn
from parkgate.services.capacity_pool import CapacityPool, Reservation
from parkgate.services.results import AdmissionResult, Outcome, internal_error
from parkgate.services.vehicle_ledger import VehicleLedger
from parkgate.utils.clock import facility_stamp, next_transaction_id, normalize_date, utcnow
from parkgate.utils.logger import get_logger

logger = get_logger(__name__)


def _fields(payload) -> dict:
    """Vehicle fields may arrive flat or nested under `data`."""
    payload = payload or {}
    nested = payload.get("data")
    return nested if isinstance(nested, dict) and nested else payload


def _pick(fields: dict, snake: str, camel: str):
    value = fields.get(snake)
    return value if value is not None else fields.get(camel)


def _plate(fields: dict) -> Optional[str]:
    plate = _pick(fields, "plate_number", "plateNumber")
    if plate is None:
        return None
    plate = str(plate).strip()
    return plate or None


def _owner_name(fields: dict) -> str:
    parts = [
        _pick(fields, "first_name", "firstName") or "",
        _pick(fields, "middle_name", "middleName") or "",
        _pick(fields, "last_name", "lastName") or "",
    ]
    return " ".join(p.strip() for p in parts if p and p.strip())


class AdmissionController:
    def __init__(self, session_factory: Callable[[], Session],
                 pool: CapacityPool = None, ledger: VehicleLedger = None):
        self.session_factory = session_factory
        self.pool = pool or CapacityPool()
        self.ledger = ledger or VehicleLedger()

    # ── validate ─────────────────────────────────────────────────────────
    def validate(self, document_id) -> AdmissionResult:
        if not document_id:
            return AdmissionResult(Outcome.MISSING_DOCUMENT_ID, "Invalid or missing document ID")

        with self.session_factory() as session:
            try:
                driver = self.ledger.get_driver(session, str(document_id))
                if driver is None:
                    return AdmissionResult(Outcome.NOT_FOUND, "Document not found")
                inside = self.ledger.find_active(session, driver.plate_number) is not None
                plate, data = driver.plate_number, driver.to_dict()
            except Exception as e:
                logger.error(f"[Validate] store failure for {document_id}: {e}", exc_info=True)
                return internal_error()

        if inside:
            return AdmissionResult(Outcome.VALID, "Vehicle is currently parked. Proceed to exit.",
                                   plate_number=plate, data=data, action="exit")
        return AdmissionResult(Outcome.VALID, "Vehicle can enter.",
                               plate_number=plate, data=data, action="enter")

    # ── admit ────────────────────────────────────────────────────────────
    def admit(self, payload: dict) -> AdmissionResult:
        fields = _fields(payload)
        plate = _plate(fields)
        if not plate:
            return AdmissionResult(Outcome.MISSING_PLATE, "Missing plate number.")

        if fields.get("status"):
            return self._admit_exiting(plate)

        vehicle_type = _pick(fields, "vehicle_type", "vehicleType")
        class_key = self.pool.class_key_for(vehicle_type)
        entered_at = utcnow()
        day, time_in = facility_stamp(entered_at)
        transaction_id = next_transaction_id(plate)
        record = VehicleIn(
            transaction_id=transaction_id,
            plate_number=plate,
            vehicle_owner=_owner_name(fields),
            contact_number=_pick(fields, "contact_number", "contactNumber"),
            user_type=_pick(fields, "user_type", "userType"),
            vehicle_type=vehicle_type,
            vehicle_class=class_key,
            vehicle_color=_pick(fields, "vehicle_color", "vehicleColor"),
            date=day,
            time_in=time_in,
            entered_at=entered_at,
        )

        with self.session_factory() as session:
            try:
                # The reservation is the transaction's first statement so the
                # write lock is held before the duplicate lookup runs.
                reservation = self.pool.reserve(session, class_key)
                if self.ledger.find_active(session, plate) is not None:
                    session.rollback()
                    logger.info(f"[Entry] Plate={plate} rejected: already inside")
                    return AdmissionResult(Outcome.DUPLICATE_ENTRY, "Vehicle already entered.", plate_number=plate)
                if reservation is Reservation.DENIED:
                    session.rollback()
                    logger.info(f"[Entry] Plate={plate} rejected: partition '{class_key}' full")
                    return AdmissionResult(Outcome.CAPACITY_EXCEEDED, "Parking lot full.", plate_number=plate)
                self.ledger.add_active(session, record)
                session.commit()
            except IntegrityError:
                session.rollback()
                logger.info(f"[Entry] Plate={plate} rejected: concurrent entry won")
                return AdmissionResult(Outcome.DUPLICATE_ENTRY, "Vehicle already entered.", plate_number=plate)
            except Exception as e:
                session.rollback()
                logger.error(f"[Entry] store failure for plate {plate}: {e}", exc_info=True)
                return internal_error()

        logger.info(f"[Entry] Plate={plate} | Class={class_key} | Txn={transaction_id} | {day} {time_in}")
        return AdmissionResult(Outcome.ACCEPTED, "Vehicle entered successfully",
                               plate_number=plate, transaction_id=transaction_id)

    def _admit_exiting(self, plate: str) -> AdmissionResult:
        """
        Caller flagged the vehicle as already exiting: run the duplicate check
        only. No slot is reserved and no record is written either way.
        """
        with self.session_factory() as session:
            try:
                active = self.ledger.find_active(session, plate)
            except Exception as e:
                logger.error(f"[Entry] store failure for plate {plate}: {e}", exc_info=True)
                return internal_error()
        if active is not None:
            return AdmissionResult(Outcome.DUPLICATE_ENTRY, "Vehicle already entered.",
                                   plate_number=plate, transaction_id=active.transaction_id)
        logger.info(f"[Entry] Plate={plate} flagged as exiting, not admitted")
        return AdmissionResult(Outcome.EXIT_IN_PROGRESS, "Vehicle is marked as exiting.", plate_number=plate)

    # ── release ──────────────────────────────────────────────────────────
    def release(self, payload: dict) -> AdmissionResult:
        plate = _plate(_fields(payload))
        if not plate:
            return AdmissionResult(Outcome.MISSING_PLATE, "Missing plate number")

        with self.session_factory() as session:
            try:
                record = self.ledger.find_active(session, plate)
                if record is None:
                    return AdmissionResult(Outcome.NOT_FOUND, "Vehicle not found in the parking area",
                                           plate_number=plate)
                transaction_id = record.transaction_id
                if not self.ledger.remove_active(session, transaction_id):
                    session.rollback()
                    logger.info(f"[Exit] Plate={plate} Txn={transaction_id} already released")
                    return AdmissionResult(Outcome.NOT_FOUND, "Vehicle not found in the parking area",
                                           plate_number=plate)
                exited_at = utcnow()
                _, time_out = facility_stamp(exited_at)
                self.pool.release(session, record.vehicle_class)
                self.ledger.archive(session, record, time_out, exited_at)
                log = self.ledger.close_log(session, transaction_id, time_out, exited_at)
                if log is None:
                    logger.warning(f"[Exit] No history entry for Txn={transaction_id}")
                session.commit()
            except Exception as e:
                session.rollback()
                logger.error(f"[Exit] store failure for plate {plate}: {e}", exc_info=True)
                return internal_error()

        logger.info(f"[Exit] Plate={plate} | Txn={transaction_id} | out {time_out}")
        return AdmissionResult(Outcome.RELEASED, "Vehicle checked out successfully",
                               plate_number=plate, transaction_id=transaction_id)

    # ── history ──────────────────────────────────────────────────────────
    def history(self, date) -> AdmissionResult:
        day = normalize_date(date) if date else None
        if not day:
            return AdmissionResult(Outcome.INVALID_DATE, "Invalid or missing date")

        with self.session_factory() as session:
            try:
                records = [log.to_dict() for log in self.ledger.history_for(session, day)]
            except Exception as e:
                logger.error(f"[History] store failure for {day}: {e}", exc_info=True)
                return internal_error()

        if not records:
            return AdmissionResult(Outcome.EMPTY, "No records found for the specified date", data=[])
        return AdmissionResult(Outcome.HISTORY, "Records retrieved successfully", data=records)

    # ── occupancy ────────────────────────────────────────────────────────
    def occupancy(self) -> list[dict]:
        with self.session_factory() as session:
            return self.pool.snapshot(session)
