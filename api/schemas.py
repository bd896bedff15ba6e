"""
Request bodies for the fuel request API.

Field names are camelCase on the wire (userId, requestId, vehicleName, ...)
and snake_case in Python. Amounts are deliberately loose here: the lifecycle
controller validates them so that bad input comes back as a failed
ActionResult rather than a framework error page.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shared.models import ReceiptInfo


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FuelEntryRequest(CamelModel):
    """A driver's fuel purchase submission."""
    user_id: Optional[int] = None
    vehicle_name: Optional[str] = None
    vehicle_number: Optional[str] = None
    odometer: Optional[float] = Field(default=None, alias="odo")
    liters: Optional[float] = None
    rate: Optional[float] = None
    total: Optional[float] = None
    station: Optional[str] = None
    notes: Optional[str] = None
    receipt: Optional[ReceiptInfo] = None

    def purchase_facts(self) -> dict:
        """The purchase fields, without ids, receipt or unset amounts."""
        return self.model_dump(exclude={"user_id", "receipt"}, exclude_none=True)


class StatusUpdateRequest(CamelModel):
    """A manager's decision on a request."""
    request_id: Optional[int] = None
    status: Optional[str] = None


class SaveTokenRequest(CamelModel):
    """Register a device push token for a user."""
    user_id: Optional[int] = None
    token: Optional[str] = None
