# parkgate/models/driver.py
"""
Registered drivers (the `drivers` collection).
Maps a scanned document id to its owner and plate number.
Read by admission_service.validate to decide enter vs exit.
"""

from sqlalchemy import Column, String
from parkgate.database import Base


class Driver(Base):
    __tablename__ = "drivers"

    document_id = Column(String(128), primary_key=True)
    plate_number = Column(String(50), nullable=False, index=True)
    first_name = Column(String(100))
    middle_name = Column(String(100))
    last_name = Column(String(100))
    contact_number = Column(String(50))
    user_type = Column(String(50))          # student | employee | visitor ...
    vehicle_type = Column(String(50))       # car | motorcycle | ...
    vehicle_color = Column(String(50))

    def to_dict(self) -> dict:
        return {
            "documentId": self.document_id,
            "plateNumber": self.plate_number,
            "firstName": self.first_name,
            "middleName": self.middle_name,
            "lastName": self.last_name,
            "contactNumber": self.contact_number,
            "userType": self.user_type,
            "vehicleType": self.vehicle_type,
            "vehicleColor": self.vehicle_color,
        }

    def __repr__(self):
        return f"<Driver {self.document_id} plate={self.plate_number}>"
