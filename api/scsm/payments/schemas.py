"""Pydantic schemas for payment verification."""

from pydantic import BaseModel, Field


class VerifyPaymentRequest(BaseModel):
    """Payment verification request sent from the return page."""

    order_id: str | None = Field(None, description="Order id from create-order")
