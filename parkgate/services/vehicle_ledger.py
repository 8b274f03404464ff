# parkgate/services/vehicle_ledger.py
"""
Occupancy and history records against the store.
Every method works inside the caller's session; the caller owns the
transaction and decides when to commit or roll back.
"""

from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session
from parkgate.models.driver import Driver
from parkgate.models.parking_log import ParkingLog
from parkgate.models.vehicle_record import VehicleIn, VehicleOut


def _as_utc(moment: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands DateTime(timezone=True) values back naive
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class VehicleLedger:
    def get_driver(self, session: Session, document_id: str) -> Optional[Driver]:
        return session.get(Driver, document_id)

    def register_driver(self, session: Session, document_id: str, plate_number: str, **profile) -> Driver:
        """Insert or update a driver. Profile fields left as None keep their stored value."""
        driver = session.get(Driver, document_id)
        if driver is None:
            driver = Driver(document_id=document_id)
            session.add(driver)
        driver.plate_number = plate_number
        for column, value in profile.items():
            if not hasattr(Driver, column):
                raise ValueError(f"Unknown driver field: {column}")
            if value is not None:
                setattr(driver, column, value)
        session.flush()
        return driver

    def find_active(self, session: Session, plate_number: str) -> Optional[VehicleIn]:
        return session.execute(
            select(VehicleIn).where(VehicleIn.plate_number == plate_number)
        ).scalars().first()

    def count_active(self, session: Session, vehicle_class: str = None) -> int:
        q = select(func.count()).select_from(VehicleIn)
        if vehicle_class:
            q = q.where(VehicleIn.vehicle_class == vehicle_class)
        return session.execute(q).scalar_one()

    def add_active(self, session: Session, record: VehicleIn) -> VehicleIn:
        """Stage the active record and its open history entry (time_out NULL)."""
        session.add(record)
        session.add(ParkingLog(
            transaction_id=record.transaction_id,
            plate_number=record.plate_number,
            vehicle_owner=record.vehicle_owner,
            contact_number=record.contact_number,
            user_type=record.user_type,
            vehicle_type=record.vehicle_type,
            vehicle_class=record.vehicle_class,
            vehicle_color=record.vehicle_color,
            date=record.date,
            time_in=record.time_in,
            time_out=None,
            entered_at=record.entered_at,
        ))
        session.flush()
        return record

    def remove_active(self, session: Session, transaction_id: str) -> bool:
        """Delete the active record; False if another release already removed it."""
        result = session.execute(
            delete(VehicleIn)
            .where(VehicleIn.transaction_id == transaction_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def archive(self, session: Session, record: VehicleIn, time_out: str, exited_at: datetime) -> VehicleOut:
        out = VehicleOut(
            transaction_id=record.transaction_id,
            plate_number=record.plate_number,
            vehicle_owner=record.vehicle_owner,
            contact_number=record.contact_number,
            user_type=record.user_type,
            vehicle_type=record.vehicle_type,
            vehicle_class=record.vehicle_class,
            vehicle_color=record.vehicle_color,
            date=record.date,
            time_in=record.time_in,
            time_out=time_out,
            entered_at=record.entered_at,
            exited_at=exited_at,
        )
        session.add(out)
        return out

    def close_log(self, session: Session, transaction_id: str, time_out: str, exited_at: datetime) -> Optional[ParkingLog]:
        log = session.get(ParkingLog, transaction_id)
        if log is None:
            return None
        log.time_out = time_out
        log.exited_at = exited_at
        entered_at = _as_utc(log.entered_at)
        if entered_at is not None:
            log.duration_seconds = max(0, int((exited_at - entered_at).total_seconds()))
        return log

    def history_for(self, session: Session, day: str) -> list[ParkingLog]:
        return session.execute(
            select(ParkingLog).where(ParkingLog.date == day).order_by(ParkingLog.transaction_id)
        ).scalars().all()
