# parkgate/models/capacity_slot.py
"""
Capacity partition counters.
One row per partition (all | two_wheel | four_wheel). `occupied` is only
changed through conditional UPDATEs in capacity_pool, and is re-derived from
vehicles_in on startup.
"""

from sqlalchemy import Column, Integer, String
from parkgate.database import Base


class CapacitySlot(Base):
    __tablename__ = "capacity_slots"

    class_key = Column(String(20), primary_key=True)
    capacity = Column(Integer, nullable=False)
    occupied = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<CapacitySlot {self.class_key} {self.occupied}/{self.capacity}>"
