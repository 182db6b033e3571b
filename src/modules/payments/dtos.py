"""Payment DTOs.

``GatewayEventDTO`` is the parsed webhook body.  Only the fields the
settlement needs are declared; the gateway sends many more and they are
ignored.
"""

from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, model_validator


class InitiatePaymentDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner_id: int
    order_id: UUID


class PaymentInitiationOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    authorization_url: str
    reference: str


CHARGE_SUCCESS = "charge.success"
CHARGE_FAILED = "charge.failed"
CHARGE_EVENTS = frozenset({CHARGE_SUCCESS, CHARGE_FAILED})


class GatewayEventDataDTO(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    reference: Optional[str] = None
    status: Optional[str] = None


class GatewayEventDTO(BaseModel):
    """A verified gateway notification, e.g. ``{"event": "charge.success", ...}``.

    ``data`` is only read for ``charge.*`` events; for any other event type
    it is dropped before validation so its shape can never reject the body.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    event: str
    data: GatewayEventDataDTO = GatewayEventDataDTO()

    @model_validator(mode="before")
    @classmethod
    def _drop_data_of_ignored_events(cls, values: Any) -> Any:
        if isinstance(values, dict) and values.get("event") not in CHARGE_EVENTS:
            return {key: value for key, value in values.items() if key != "data"}
        return values

    @property
    def reference(self) -> Optional[str]:
        return self.data.reference
