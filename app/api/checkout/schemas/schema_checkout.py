from __future__ import annotations

import enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.api.accounts.schemas.schema_account import AccountOut
from app.api.orders.schemas.schema_order import CustomerDetails, DeliveryAddress, OrderOut, RestaurantInfo


class CheckoutStep(str, enum.Enum):
    ADDRESS = "address"
    DETAILS = "details"
    PHONE = "phone"
    OTP = "otp"
    PAYMENT = "payment"
    SUCCESS = "success"


STEP_ORDER = list(CheckoutStep)


class CheckoutState(BaseModel):
    """State of one checkout attempt. A fresh instance is created on reset."""
    current_step: CheckoutStep = CheckoutStep.ADDRESS
    customer_details: CustomerDetails = Field(default_factory=CustomerDetails)
    delivery_address: Optional[DeliveryAddress] = None
    restaurant: Optional[RestaurantInfo] = None
    otp: str = ""
    otp_sent: bool = False
    using_fallback: bool = False
    loading: bool = False
    error: Optional[str] = None
    field_errors: Dict[str, str] = Field(default_factory=dict)
    is_new_account: Optional[bool] = None
    account: Optional[AccountOut] = None
    # set only when the provider verified the code; sent back as X-Super-Token
    super_token: Optional[str] = None
    order: Optional[OrderOut] = None

    model_config = ConfigDict(validate_assignment=True)


# ----------------------------------------------------------------------
# Requests
# ----------------------------------------------------------------------
class ConfirmAddressRequest(BaseModel):
    delivery_address: Optional[DeliveryAddress] = None
    restaurant: Optional[RestaurantInfo] = None


class CustomerDetailsUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    delivery_instructions: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class OtpRequest(BaseModel):
    otp: str


class GoToStepRequest(BaseModel):
    step: CheckoutStep


class CheckoutActionOut(BaseModel):
    """Result of an action plus the state it left behind."""
    ok: bool
    state: CheckoutState
