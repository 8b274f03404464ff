# parkgate/services/capacity_pool.py
"""
Capacity accounting per partition (all | two_wheel | four_wheel).

reserve() is one conditional UPDATE:
    UPDATE capacity_slots SET occupied = occupied + 1
    WHERE class_key = :key AND occupied < capacity
so the capacity check and the increment happen in the same statement, inside
the caller's transaction. The admission insert commits (or rolls back) with it.
"""

from enum import Enum
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session
from parkgate.config import settings
from parkgate.models.capacity_slot import CapacitySlot
from parkgate.models.vehicle_record import VehicleIn
from parkgate.utils.logger import get_logger

logger = get_logger(__name__)

UNDIFFERENTIATED = "all"
TWO_WHEEL = "two_wheel"
FOUR_WHEEL = "four_wheel"

_TWO_WHEEL_TYPES = {
    "motorcycle", "motorbike", "motor", "scooter", "moped", "bicycle", "bike",
    "ebike", "e-bike", "two-wheel", "two_wheel", "two wheel", "2-wheel", "2 wheel", "2w",
}


class VehicleClass(str, Enum):
    TWO_WHEEL = TWO_WHEEL
    FOUR_WHEEL = FOUR_WHEEL
    UNDIFFERENTIATED = UNDIFFERENTIATED


class Reservation(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"


def classify_vehicle(vehicle_type) -> VehicleClass:
    """Two-wheelers by name, everything else (including unknown) is four-wheel."""
    if vehicle_type and str(vehicle_type).strip().lower() in _TWO_WHEEL_TYPES:
        return VehicleClass.TWO_WHEEL
    return VehicleClass.FOUR_WHEEL


class CapacityPool:
    def __init__(self, limits: dict = None):
        self.limits = dict(limits if limits is not None else settings.CAPACITY_LIMITS)

    @property
    def partitioned(self) -> bool:
        return UNDIFFERENTIATED not in self.limits

    def class_key_for(self, vehicle_type) -> str:
        if not self.partitioned:
            return UNDIFFERENTIATED
        return classify_vehicle(vehicle_type).value

    def reserve(self, session: Session, class_key: str) -> Reservation:
        stmt = (
            update(CapacitySlot)
            .where(CapacitySlot.class_key == class_key,
                   CapacitySlot.occupied < CapacitySlot.capacity)
            .values(occupied=CapacitySlot.occupied + 1)
            .execution_options(synchronize_session=False)
        )
        if session.execute(stmt).rowcount == 1:
            return Reservation.GRANTED
        return Reservation.DENIED

    def release(self, session: Session, class_key: str) -> None:
        stmt = (
            update(CapacitySlot)
            .where(CapacitySlot.class_key == class_key, CapacitySlot.occupied > 0)
            .values(occupied=CapacitySlot.occupied - 1)
            .execution_options(synchronize_session=False)
        )
        if session.execute(stmt).rowcount == 0:
            logger.warning(f"[Capacity] release on empty partition '{class_key}' ignored")

    def sync(self, session: Session) -> list[dict]:
        """
        Write configured limits and recompute occupancy from vehicles_in.
        Run at startup; the active records are the source of truth.
        """
        counts = dict(
            session.execute(
                select(VehicleIn.vehicle_class, func.count()).group_by(VehicleIn.vehicle_class)
            ).all()
        )
        for class_key, capacity in self.limits.items():
            if class_key == UNDIFFERENTIATED:
                occupied = sum(counts.values())
            else:
                occupied = counts.get(class_key, 0)
            slot = session.get(CapacitySlot, class_key)
            if slot is None:
                slot = CapacitySlot(class_key=class_key, capacity=capacity, occupied=occupied)
                session.add(slot)
            else:
                slot.capacity = capacity
                slot.occupied = occupied
            if occupied > capacity:
                logger.warning(f"[Capacity] {class_key} over capacity after sync: {occupied}/{capacity}")
        session.commit()
        snapshot = self.snapshot(session)
        logger.info(f"[Capacity] synced: {snapshot}")
        return snapshot

    def snapshot(self, session: Session) -> list[dict]:
        slots = session.execute(
            select(CapacitySlot).where(CapacitySlot.class_key.in_(list(self.limits)))
        ).scalars().all()
        return [
            {
                "classKey": s.class_key,
                "capacity": s.capacity,
                "occupied": s.occupied,
                "available": max(0, s.capacity - s.occupied),
            }
            for s in slots
        ]
