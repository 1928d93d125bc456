"""Pydantic schemas for order creation."""

from decimal import Decimal

from pydantic import BaseModel, Field


ORDER_ID_PLACEHOLDER = "{order_id}"


class CreateOrderRequest(BaseModel):
    """Checkout request from the enrollment page.

    Fields are optional at the schema level so the service can report every
    missing field as one validation error.
    """

    customer_id: str | None = Field(None, description="Client-side customer id")
    customer_name: str | None = Field(None, description="Full name")
    customer_phone: str | None = Field(None, description="Mobile number")
    customer_email: str | None = Field(None, description="Email address")
    order_amount: Decimal | None = Field(
        None, description="Client amount (overridden by server prices)"
    )
    return_url: str | None = Field(
        None, description=f"Return URL containing the {ORDER_ID_PLACEHOLDER} placeholder"
    )
    course_id: str | None = Field(
        None, description="Course selection code (course id or combo code)"
    )
    center_name: str | None = Field(None, description="Center/branch name")
