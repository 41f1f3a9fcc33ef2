# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Plan catalog endpoint."""

from fastapi import APIRouter, Query

from teammove.plans import list_plans
from teammove.schemas.plan import PlanListResponse, PlanResponse

router = APIRouter(prefix="/plans", tags=["plans"])


@router.get(
    "",
    response_model=PlanListResponse,
    summary="List plans",
    description="Public catalog of subscription plans with prices and limits.",
)
async def get_plans(
    include_free: bool = Query(True, description="Include the free Découverte plan"),
) -> PlanListResponse:
    return PlanListResponse(plans=[PlanResponse.from_plan(p) for p in list_plans(include_free)])
