"""
dudelang/models/entitlement.py

Entitlement record persisted per anonymous installation id.

A record only exists once a checkout session has been verified as paid and
complete. No record means the installation is on the free tier.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


def is_valid_anonymous_id(value: Optional[str]) -> bool:
    """True when value is a canonical (lowercase, hyphenated) UUID string."""
    if not value or not isinstance(value, str):
        return False
    try:
        return str(UUID(value)) == value
    except ValueError:
        return False


class EntitlementRecord(BaseModel):
    """
    Subscription state for one AnonymousId.

    Serialized with the camelCase keys of the on-disk document:
    anonymousId, isSubscribed, stripeCustomerId, stripeSubscriptionId.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    anonymous_id: str = Field(alias="anonymousId")
    is_subscribed: bool = Field(alias="isSubscribed")
    stripe_customer_id: Optional[str] = Field(default=None, alias="stripeCustomerId")
    stripe_subscription_id: Optional[str] = Field(default=None, alias="stripeSubscriptionId")

    @model_validator(mode="after")
    def _subscribed_requires_customer(self):
        if self.is_subscribed and not self.stripe_customer_id:
            raise ValueError("isSubscribed=true requires stripeCustomerId")
        return self

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
