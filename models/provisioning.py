# models/provisioning.py

from typing import Optional
from pydantic import AliasChoices, BaseModel, EmailStr, Field


# --------------------------------------------------------------------
# REQUEST BODIES
# EmailStr rejects malformed addresses here. Lowercasing and plan checks
# live in core.validators so they run the same way for direct service calls.
# --------------------------------------------------------------------
class CreateUserRequest(BaseModel):
    email: EmailStr
    password: str
    name: str
    property_name: str


class RegisterRequest(CreateUserRequest):
    plan: str


class CreateCustomerRequest(BaseModel):
    email: EmailStr
    name: str
    property_name: str


class CreateCheckoutRequest(BaseModel):
    customer_id: str
    plan: str
    user_id: Optional[str] = None
    email: Optional[EmailStr] = None


class CreateSubscriptionRequest(BaseModel):
    user_id: str
    email: EmailStr
    stripe_customer_id: str = Field(..., validation_alias=AliasChoices("stripe_customer_id", "customer_id"))
    plan: str


# --------------------------------------------------------------------
# RESULTS
# --------------------------------------------------------------------
class ProvisionedAccount(BaseModel):
    user_id: str
    email: str
    name: str
    property_name: str
    role: str = "pm"


class CheckoutSession(BaseModel):
    url: Optional[str] = None
    session_id: str


class RegistrationResult(BaseModel):
    user_id: str
    customer_id: str
    url: Optional[str] = None
    session_id: str
