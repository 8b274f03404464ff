# parkgate/schemas/gate.py
from pydantic import BaseModel


class GateStateOut(BaseModel):
    message: str
    status: str          # settled | busy | device_unavailable | timeout
    direction: str       # open | close
    running: bool
