# ParkGate store models
# Import all models here for SQLAlchemy discovery

from parkgate.models.driver import Driver                           # noqa
from parkgate.models.vehicle_record import VehicleIn, VehicleOut    # noqa
from parkgate.models.parking_log import ParkingLog                  # noqa
from parkgate.models.capacity_slot import CapacitySlot              # noqa
