# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Pydantic schemas for the plan catalog."""

from pydantic import BaseModel, ConfigDict

from teammove.plans import Plan


class PlanLimitsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    max_events: int | None
    max_invitations: int | None
    can_delete_events: bool
    can_use_advanced_features: bool


class PlanResponse(BaseModel):
    id: str
    name: str
    type: str
    description: str
    price_cents: int
    currency: str
    billing_interval: str
    checkout_mode: str
    package_events: int | None = None
    validity_months: int | None = None
    features: list[str]
    popular: bool = False
    limits: PlanLimitsResponse

    @classmethod
    def from_plan(cls, plan: Plan) -> "PlanResponse":
        return cls(
            id=plan.id,
            name=plan.name,
            type=plan.type.value,
            description=plan.description,
            price_cents=plan.price_cents,
            currency=plan.currency,
            billing_interval=plan.billing_interval.value,
            checkout_mode=plan.checkout_mode.value,
            package_events=plan.package_events,
            validity_months=plan.validity_months,
            features=list(plan.features),
            popular=plan.popular,
            limits=PlanLimitsResponse.model_validate(plan.limits),
        )


class PlanListResponse(BaseModel):
    plans: list[PlanResponse]
