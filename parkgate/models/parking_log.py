# parkgate/models/parking_log.py
"""
Parking history (the `parkingLog` collection).
Written at admission with time_out NULL, patched with the exit fields on
release. Queried by exact facility-local date.
"""

from sqlalchemy import Column, Integer, String, DateTime
from parkgate.database import Base


class ParkingLog(Base):
    __tablename__ = "parking_log"

    transaction_id = Column(String(120), primary_key=True)
    plate_number = Column(String(50), nullable=False, index=True)
    vehicle_owner = Column(String(300))
    contact_number = Column(String(50))
    user_type = Column(String(50))
    vehicle_type = Column(String(50))
    vehicle_class = Column(String(20))
    vehicle_color = Column(String(50))
    date = Column(String(10), nullable=False, index=True)
    time_in = Column(String(11), nullable=False)
    time_out = Column(String(11))             # NULL while the vehicle is inside
    entered_at = Column(DateTime(timezone=True))
    exited_at = Column(DateTime(timezone=True))
    duration_seconds = Column(Integer)        # set on exit

    def to_dict(self) -> dict:
        return {
            "transactionId": self.transaction_id,
            "plateNumber": self.plate_number,
            "vehicleOwner": self.vehicle_owner,
            "contactNumber": self.contact_number,
            "userType": self.user_type,
            "vehicleType": self.vehicle_type,
            "vehicleClass": self.vehicle_class,
            "vehicleColor": self.vehicle_color,
            "date": self.date,
            "timeIn": self.time_in,
            "timeOut": self.time_out,
            "durationSeconds": self.duration_seconds,
        }

    def __repr__(self):
        return f"<ParkingLog {self.transaction_id} {self.date} {self.time_in}-{self.time_out}>"
