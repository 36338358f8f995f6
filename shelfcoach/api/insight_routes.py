"""Insight API routes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from shelfcoach.api.schemas import InsightListResponse, InsightResponse
from shelfcoach.core.dependencies import get_insight_service
from shelfcoach.domain.services import IInsightService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["insights"])


@router.get("/insights", response_model=InsightListResponse)
async def get_insights(
    insight_service: Annotated[IInsightService, Depends(get_insight_service)],
) -> InsightListResponse:
    """Patterns in the whole reading history.

    Always ordered: overall outcomes, abandonment timing, per-genre
    completion, top abandonment reasons.  With fewer than five books only
    an ``early-state`` placeholder is returned.
    """
    insights = await insight_service.get_insights()
    logger.info("Returning %d insights", len(insights))
    return InsightListResponse(
        insights=[InsightResponse.model_validate(i) for i in insights],
        total=len(insights),
    )
