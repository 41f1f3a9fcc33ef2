# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Subscription plan catalog.

Plans are static: the catalog is the single source of truth for prices,
quotas and feature flags. Stripe price ids can be supplied through
settings, otherwise checkout sessions are created with inline price data.
"""

from dataclasses import dataclass, field
from enum import Enum

from .errors import PlanNotFoundError


class PlanType(str, Enum):
    """Subscription family stored on the organization."""

    DECOUVERTE = "decouverte"
    EVENEMENTIELLE = "evenementielle"
    PRO_CLUB = "pro_club"
    PRO_PME = "pro_pme"
    PRO_ENTREPRISE = "pro_entreprise"


class BillingInterval(str, Enum):
    """How a plan is paid (also stored as the organization's payment method)."""

    MONTHLY = "monthly"
    ANNUAL = "annual"
    PACK_SINGLE = "pack_single"
    PACK_10 = "pack_10"


class CheckoutMode(str, Enum):
    PAYMENT = "payment"
    SUBSCRIPTION = "subscription"


PRO_TYPES = frozenset({PlanType.PRO_CLUB, PlanType.PRO_PME, PlanType.PRO_ENTREPRISE})


@dataclass(frozen=True)
class PlanLimits:
    """Quotas and feature flags. None means unlimited."""

    max_events: int | None
    max_invitations: int | None
    can_delete_events: bool = True
    can_use_advanced_features: bool = True


@dataclass(frozen=True)
class Plan:
    id: str
    name: str
    type: PlanType
    description: str
    price_cents: int
    billing_interval: BillingInterval
    limits: PlanLimits
    currency: str = "eur"
    package_events: int | None = None
    validity_months: int | None = None
    features: tuple[str, ...] = field(default_factory=tuple)
    popular: bool = False

    @property
    def checkout_mode(self) -> CheckoutMode:
        if self.type == PlanType.EVENEMENTIELLE:
            return CheckoutMode.PAYMENT
        return CheckoutMode.SUBSCRIPTION

    @property
    def is_free(self) -> bool:
        return self.price_cents == 0

    @property
    def is_package(self) -> bool:
        return self.package_events is not None


DEFAULT_PLAN_ID = "decouverte"
PACKAGE_VALIDITY_MONTHS = 12

_UNLIMITED = PlanLimits(max_events=None, max_invitations=None)

PLANS: dict[str, Plan] = {
    plan.id: plan
    for plan in (
        Plan(
            id="decouverte",
            name="Découverte",
            type=PlanType.DECOUVERTE,
            description="Idéal pour tester TeamMove",
            price_cents=0,
            billing_interval=BillingInterval.MONTHLY,
            limits=PlanLimits(
                max_events=1,
                max_invitations=20,
                can_delete_events=False,
                can_use_advanced_features=False,
            ),
            features=(
                "1 événement",
                "Jusqu'à 20 invitations",
                "Gestion covoiturage",
                "Support par email",
            ),
        ),
        Plan(
            id="evenementielle-single",
            name="Pack Événement",
            type=PlanType.EVENEMENTIELLE,
            description="Parfait pour un événement ponctuel",
            price_cents=1500,
            billing_interval=BillingInterval.PACK_SINGLE,
            limits=_UNLIMITED,
            package_events=1,
            validity_months=PACKAGE_VALIDITY_MONTHS,
            features=(
                "1 événement complet",
                "Invitations illimitées",
                "Valable 12 mois",
            ),
        ),
        Plan(
            id="evenementielle-pack10",
            name="Pack 10 Événements",
            type=PlanType.EVENEMENTIELLE,
            description="Idéal pour les organisateurs réguliers",
            price_cents=15000,
            billing_interval=BillingInterval.PACK_10,
            limits=_UNLIMITED,
            package_events=10,
            validity_months=PACKAGE_VALIDITY_MONTHS,
            features=(
                "10 événements complets",
                "Invitations illimitées",
                "Valable 12 mois",
            ),
            popular=True,
        ),
        Plan(
            id="pro-club",
            name="Clubs & Associations",
            type=PlanType.PRO_CLUB,
            description="Pour clubs sportifs et associations",
            price_cents=1999,
            billing_interval=BillingInterval.MONTHLY,
            limits=_UNLIMITED,
            features=("Événements illimités", "Invitations illimitées", "Support prioritaire"),
        ),
        Plan(
            id="pro-pme",
            name="PME",
            type=PlanType.PRO_PME,
            description="Pour petites et moyennes entreprises",
            price_cents=4900,
            billing_interval=BillingInterval.MONTHLY,
            limits=_UNLIMITED,
            features=("Événements illimités", "Invitations illimitées", "Statistiques avancées"),
        ),
        Plan(
            id="pro-entreprise",
            name="Grandes Entreprises",
            type=PlanType.PRO_ENTREPRISE,
            description="Pour les grandes entreprises",
            price_cents=9900,
            billing_interval=BillingInterval.MONTHLY,
            limits=_UNLIMITED,
            features=("Événements illimités", "Invitations illimitées", "Account manager dédié"),
        ),
        Plan(
            id="pro-club-annual",
            name="Clubs & Associations (annuel)",
            type=PlanType.PRO_CLUB,
            description="Pour clubs sportifs et associations, deux mois offerts",
            price_cents=19990,
            billing_interval=BillingInterval.ANNUAL,
            limits=_UNLIMITED,
            features=("Événements illimités", "Invitations illimitées", "Support prioritaire"),
        ),
        Plan(
            id="pro-pme-annual",
            name="PME (annuel)",
            type=PlanType.PRO_PME,
            description="Pour petites et moyennes entreprises, deux mois offerts",
            price_cents=49000,
            billing_interval=BillingInterval.ANNUAL,
            limits=_UNLIMITED,
            features=("Événements illimités", "Invitations illimitées", "Statistiques avancées"),
        ),
        Plan(
            id="pro-entreprise-annual",
            name="Grandes Entreprises (annuel)",
            type=PlanType.PRO_ENTREPRISE,
            description="Pour les grandes entreprises, deux mois offerts",
            price_cents=99000,
            billing_interval=BillingInterval.ANNUAL,
            limits=_UNLIMITED,
            features=("Événements illimités", "Invitations illimitées", "Account manager dédié"),
        ),
    )
}

# Limits keyed by subscription type; both event packs share the same limits.
_LIMITS_BY_TYPE: dict[PlanType, PlanLimits] = {
    PlanType.DECOUVERTE: PLANS["decouverte"].limits,
    PlanType.EVENEMENTIELLE: PLANS["evenementielle-single"].limits,
    PlanType.PRO_CLUB: PLANS["pro-club"].limits,
    PlanType.PRO_PME: PLANS["pro-pme"].limits,
    PlanType.PRO_ENTREPRISE: PLANS["pro-entreprise"].limits,
}


def get_plan(plan_id: str) -> Plan:
    """Look up a plan by id, raising PlanNotFoundError if unknown."""
    try:
        return PLANS[plan_id]
    except KeyError:
        raise PlanNotFoundError(plan_id) from None


def list_plans(include_free: bool = True) -> list[Plan]:
    return [p for p in PLANS.values() if include_free or not p.is_free]


def limits_for(subscription_type: str | None) -> PlanLimits | None:
    """Limits for a stored subscription type, or None when the type is unknown."""
    try:
        return _LIMITS_BY_TYPE[PlanType(subscription_type)]
    except ValueError:
        return None


def is_pro(subscription_type: str | None) -> bool:
    return subscription_type in {t.value for t in PRO_TYPES}


def default_plan_for_type(subscription_type: str) -> Plan | None:
    """Representative plan for a stored type (used when no plan id was recorded).

    Monthly plans are listed first, so a Pro type maps to its monthly plan.
    """
    for plan in PLANS.values():
        if plan.type.value == subscription_type:
            return plan
    return None
