"""
Rendering of action gate outcomes as HTTP responses.
"""
from fastapi import Response, status

from ..auth.action_gate import GateOutcome, GateStatus
from ..schemas.pin import GateResponse


def gate_response(outcome: GateOutcome, response: Response,
                  completed_status: int = status.HTTP_200_OK) -> GateResponse:
    """
    Convert a gate outcome into the response body and status code.

    A parked action answers 202 Accepted; the client then prompts for the
    PIN and calls the verify or cancel endpoint.
    """
    if outcome.status == GateStatus.PIN_REQUIRED:
        response.status_code = status.HTTP_202_ACCEPTED
    elif outcome.status == GateStatus.COMPLETED:
        response.status_code = completed_status
    else:
        response.status_code = status.HTTP_200_OK
    return GateResponse(status=outcome.status.value, action=outcome.action, result=outcome.result)
