# parkgate/routers/admission.py
"""
Admission endpoints: validate, vehicle entry, vehicle exit, history.
Each request is handed to the RequestDispatcher; the typed result is mapped
to an HTTP status here.
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from parkgate.schemas.admission import AdmissionOut, ValidateIn, VehicleRequest
from parkgate.services.request_dispatcher import RequestDispatcher
from parkgate.services.results import AdmissionResult, Outcome

router = APIRouter()

STATUS_BY_OUTCOME = {
    Outcome.MISSING_PLATE:       status.HTTP_400_BAD_REQUEST,
    Outcome.MISSING_DOCUMENT_ID: status.HTTP_400_BAD_REQUEST,
    Outcome.INVALID_DATE:        status.HTTP_400_BAD_REQUEST,
    Outcome.NOT_FOUND:           status.HTTP_404_NOT_FOUND,
    Outcome.DUPLICATE_ENTRY:     status.HTTP_409_CONFLICT,
    Outcome.CAPACITY_EXCEEDED:   status.HTTP_409_CONFLICT,
    Outcome.EXIT_IN_PROGRESS:    status.HTTP_409_CONFLICT,
    Outcome.INTERNAL_ERROR:      status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_dispatcher(request: Request) -> RequestDispatcher:
    """FastAPI dependency: the dispatcher built at startup."""
    return request.app.state.dispatcher


def _respond(result: AdmissionResult, success_code: int = status.HTTP_200_OK) -> JSONResponse:
    code = success_code if result.ok else STATUS_BY_OUTCOME.get(result.outcome, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(status_code=code, content=result.to_body())


@router.post("/validate", response_model=AdmissionOut, summary="Validate a scanned driver document")
async def validate(body: ValidateIn, dispatcher: RequestDispatcher = Depends(get_dispatcher)):
    """Returns the owner record and whether the vehicle should enter or exit."""
    result = await dispatcher.dispatch("validate", {"document_id": body.resolved_id()})
    return _respond(result)


@router.post("/vehicle-entry", response_model=AdmissionOut, status_code=status.HTTP_201_CREATED,
             summary="Admit a vehicle")
async def vehicle_entry(body: VehicleRequest, dispatcher: RequestDispatcher = Depends(get_dispatcher)):
    result = await dispatcher.dispatch("vehicle-entry", body.resolved())
    return _respond(result, status.HTTP_201_CREATED)


@router.post("/vehicle-exit", response_model=AdmissionOut, summary="Release a vehicle")
async def vehicle_exit(body: VehicleRequest, dispatcher: RequestDispatcher = Depends(get_dispatcher)):
    result = await dispatcher.dispatch("vehicle-exit", body.resolved())
    return _respond(result)


@router.get("/vehicle-history", response_model=AdmissionOut, summary="Parking history for one day")
async def vehicle_history(date: str = None, dispatcher: RequestDispatcher = Depends(get_dispatcher)):
    """`date` is YYYY-MM-DD on the facility calendar. No records → 200 with an empty list."""
    result = await dispatcher.dispatch("vehicle-history", {"date": date})
    return _respond(result)
