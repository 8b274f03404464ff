# parkgate/models/vehicle_record.py
"""
Occupancy records.
VehicleIn holds vehicles currently inside (one row per active occupancy,
plate_number unique). VehicleOut is the append-only archive written on exit.
"""

from sqlalchemy import Column, Integer, String, DateTime
from parkgate.database import Base


class VehicleIn(Base):
    __tablename__ = "vehicles_in"

    transaction_id = Column(String(120), primary_key=True)   # <ms-timestamp>-<plate>
    plate_number = Column(String(50), unique=True, nullable=False, index=True)
    vehicle_owner = Column(String(300))
    contact_number = Column(String(50))
    user_type = Column(String(50))
    vehicle_type = Column(String(50))
    vehicle_class = Column(String(20), nullable=False, index=True)  # two_wheel | four_wheel | all
    vehicle_color = Column(String(50))
    date = Column(String(10), nullable=False)       # facility-local YYYY-MM-DD
    time_in = Column(String(11), nullable=False)    # facility-local hh:mm:ss AM
    entered_at = Column(DateTime(timezone=True))

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
        }

    def __repr__(self):
        return f"<VehicleIn {self.transaction_id} class={self.vehicle_class}>"


class VehicleOut(Base):
    __tablename__ = "vehicles_out"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(String(120), nullable=False, index=True)
    plate_number = Column(String(50), nullable=False, index=True)
    vehicle_owner = Column(String(300))
    contact_number = Column(String(50))
    user_type = Column(String(50))
    vehicle_type = Column(String(50))
    vehicle_class = Column(String(20))
    vehicle_color = Column(String(50))
    date = Column(String(10), nullable=False)
    time_in = Column(String(11))
    time_out = Column(String(11), nullable=False)
    entered_at = Column(DateTime(timezone=True))
    exited_at = Column(DateTime(timezone=True))

    def __repr__(self):
        return f"<VehicleOut {self.transaction_id} out={self.time_out}>"
