"""Payloads for wallet operations."""

from typing import Optional

from pydantic import BaseModel


class AddMoneyRequest(BaseModel):
    amount: Optional[float] = None
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None


class RedeemRequest(BaseModel):
    points: Optional[int] = None


class ReferralRequest(BaseModel):
    referral_code: Optional[str] = None


class WalletPaymentRequest(BaseModel):
    booking_id: Optional[str] = None
    amount: Optional[float] = None
    service_id: Optional[str] = None
