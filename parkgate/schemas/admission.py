# parkgate/schemas/admission.py
from pydantic import BaseModel, Field, field_validator
from typing import Any, Optional


def _as_text(value):
    # scanners send ids and plates as bare numbers
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class ValidateIn(BaseModel):
    document_id: Optional[str] = Field(None, alias="documentId")
    doc_id: Optional[str] = Field(None, alias="docId")   # older scanner clients

    class Config:
        populate_by_name = True

    @field_validator("document_id", "doc_id", mode="before")
    @classmethod
    def numbers_as_text(cls, value):
        return _as_text(value)

    def resolved_id(self) -> Optional[str]:
        return self.document_id or self.doc_id


class VehicleFields(BaseModel):
    plate_number: Optional[str] = Field(None, alias="plateNumber")
    first_name: Optional[str] = Field(None, alias="firstName")
    middle_name: Optional[str] = Field(None, alias="middleName")
    last_name: Optional[str] = Field(None, alias="lastName")
    contact_number: Optional[str] = Field(None, alias="contactNumber")
    user_type: Optional[str] = Field(None, alias="userType")
    vehicle_type: Optional[str] = Field(None, alias="vehicleType")
    vehicle_color: Optional[str] = Field(None, alias="vehicleColor")
    status: Optional[Any] = None     # truthy = vehicle already exiting

    class Config:
        populate_by_name = True
        extra = "ignore"

    @field_validator("plate_number", "contact_number", mode="before")
    @classmethod
    def numbers_as_text(cls, value):
        return _as_text(value)


class VehicleRequest(VehicleFields):
    """Entry/exit body. Fields may be sent flat or wrapped in `data`."""
    data: Optional[VehicleFields] = None

    def resolved(self) -> dict:
        fields = self.data if self.data is not None else self
        dump = fields.model_dump()
        dump.pop("data", None)
        return dump


class AdmissionOut(BaseModel):
    message: str
    status: str
    plateNumber: Optional[str] = None
    transactionId: Optional[str] = None
    action: Optional[str] = None
    data: Optional[Any] = None
