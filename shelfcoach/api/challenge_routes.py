"""Challenge API routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from shelfcoach.api.schemas import ChallengeResponse, DecisionRequest
from shelfcoach.core.dependencies import get_coaching_service
from shelfcoach.domain.services import ICoachingService

router = APIRouter(prefix="/challenges", tags=["challenges"])


@router.post("/{challenge_id}/decision", response_model=ChallengeResponse)
async def record_decision(
    challenge_id: UUID,
    body: DecisionRequest,
    coaching_service: Annotated[ICoachingService, Depends(get_coaching_service)],
) -> ChallengeResponse:
    """Record whether the reader kept going or quit after being coached."""
    try:
        challenge = await coaching_service.record_decision(challenge_id, body.decision)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return ChallengeResponse.model_validate(challenge)
