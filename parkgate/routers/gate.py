# parkgate/routers/gate.py
"""Gate actuation endpoints. Each call waits for the hardware acknowledgement."""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from parkgate.schemas.gate import GateStateOut
from parkgate.services.gate_controller import GateController, GateReply, GateStatus

router = APIRouter()

STATUS_BY_GATE_STATUS = {
    GateStatus.SETTLED:            status.HTTP_200_OK,
    GateStatus.BUSY:               status.HTTP_409_CONFLICT,
    GateStatus.DEVICE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    GateStatus.TIMEOUT:            status.HTTP_504_GATEWAY_TIMEOUT,
}


def get_gate(request: Request) -> GateController:
    return request.app.state.gate


def _respond(reply: GateReply) -> JSONResponse:
    return JSONResponse(status_code=STATUS_BY_GATE_STATUS[reply.status], content=reply.to_body())


@router.get("/open", response_model=GateStateOut, summary="Open the gate")
async def open_gate(gate: GateController = Depends(get_gate)):
    return _respond(await gate.open())


@router.get("/close", response_model=GateStateOut, summary="Close the gate")
async def close_gate(gate: GateController = Depends(get_gate)):
    return _respond(await gate.close())


@router.get("/gate", summary="Current gate state (no command sent)")
def gate_status(gate: GateController = Depends(get_gate)):
    return gate.status()
