"""
Wallets hold a money balance, reward points and the transaction log.

The balance methods mutate the model in memory; the caller persists
the wallet with ``save``.  ``before_save`` assigns a referral code the
first time a wallet is saved and recomputes the reward level from the
points balance every time.
"""

import secrets
import string
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, computed_field

from rahaseva_api.app.store import DocumentStore

from .base import Document

TransactionType = Literal[
    "credit",
    "debit",
    "point_earned",
    "point_redeemed",
    "referral_bonus",
    "booking_payment",
    "emergency_service",
    "refund",
]
RewardLevel = Literal["bronze", "silver", "gold", "platinum"]

POINTS_CONVERSION_RATE = 0.25
MIN_REDEEMABLE_POINTS = 100
REFERRAL_POINTS = 100
BOOKING_POINTS_RATE = 0.1

# Ordered from the highest threshold down.
REWARD_THRESHOLDS = (("platinum", 5000), ("gold", 2000), ("silver", 500), ("bronze", 0))

REWARD_BENEFITS = {
    "bronze": {"cashback_rate": 1, "booking_discount": 0, "points_per_booking": 10, "next_level": "silver", "next_level_at": 500},
    "silver": {"cashback_rate": 2, "booking_discount": 5, "points_per_booking": 20, "next_level": "gold", "next_level_at": 2000},
    "gold": {"cashback_rate": 3, "booking_discount": 10, "points_per_booking": 30, "next_level": "platinum", "next_level_at": 5000},
    "platinum": {"cashback_rate": 5, "booking_discount": 15, "points_per_booking": 50, "next_level": None, "next_level_at": None},
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def reward_level_for(points: int) -> str:
    for level, threshold in REWARD_THRESHOLDS:
        if points >= threshold:
            return level
    return "bronze"


def generate_referral_code(user_id: str) -> str:
    alphabet = string.ascii_uppercase + string.digits
    random_part = "".join(secrets.choice(alphabet) for _ in range(4))
    return f"RH{random_part}{user_id[-4:].upper()}"


class Amounts(BaseModel):
    money: float = 0
    points: int = 0


class WalletTransaction(BaseModel):
    type: TransactionType
    amount: float
    is_money: bool = True
    description: str
    reference: Optional[str] = None
    booking_id: Optional[str] = None
    service_id: Optional[str] = None
    status: Literal["pending", "completed", "failed", "cancelled"] = "completed"
    created_at: datetime = Field(default_factory=_utcnow)


class Wallet(Document):
    collection = "wallets"

    user: str
    balance: Amounts = Field(default_factory=Amounts)
    currency: str = "INR"
    referral_code: Optional[str] = None
    referred_by: Optional[str] = None
    transactions: List[WalletTransaction] = Field(default_factory=list)
    is_active: bool = True
    last_updated: datetime = Field(default_factory=_utcnow)
    total_earned: Amounts = Field(default_factory=Amounts)
    total_spent: Amounts = Field(default_factory=Amounts)
    reward_level: RewardLevel = "bronze"
    rewards_enabled: bool = True

    @computed_field
    @property
    def formatted_balance(self) -> dict:
        return {"money": f"₹{self.balance.money:.2f}", "points": self.balance.points}

    async def before_save(self, store: DocumentStore) -> None:
        if not self.referral_code:
            self.referral_code = generate_referral_code(self.user)
        self.reward_level = reward_level_for(self.balance.points)

    def recent_transactions(self, skip: int = 0, limit: int = 10) -> List[WalletTransaction]:
        ordered = sorted(self.transactions, key=lambda t: t.created_at, reverse=True)
        return ordered[skip:skip + limit]

    def add_transaction(
        self,
        type: str,
        amount: float,
        description: str,
        is_money: bool = True,
        reference: Optional[str] = None,
        booking_id: Optional[str] = None,
        service_id: Optional[str] = None,
    ) -> WalletTransaction:
        transaction = WalletTransaction(
            type=type,
            amount=amount,
            is_money=is_money,
            description=description,
            reference=reference,
            booking_id=booking_id,
            service_id=service_id,
        )
        self.transactions.append(transaction)
        if is_money:
            if type in ("credit", "refund"):
                self.balance.money += amount
                self.total_earned.money += amount
            elif type in ("debit", "booking_payment"):
                self.balance.money -= amount
                self.total_spent.money += amount
        else:
            if type in ("point_earned", "referral_bonus"):
                self.balance.points += int(amount)
                self.total_earned.points += int(amount)
            elif type == "point_redeemed":
                self.balance.points -= int(amount)
                self.total_spent.points += int(amount)
        self.last_updated = _utcnow()
        return transaction

    def redeem_points(self, points: int, conversion_rate: float = POINTS_CONVERSION_RATE) -> float:
        """Convert ``points`` into money; returns the credited amount."""
        if points <= 0:
            raise ValueError("Points to redeem must be greater than 0")
        if points > self.balance.points:
            raise ValueError("Insufficient points balance")
        money_value = points * conversion_rate
        self.add_transaction(
            "point_redeemed",
            points,
            f"Redeemed {points} points for {money_value:g} {self.currency}",
            is_money=False,
        )
        self.add_transaction("credit", money_value, f"Credit from {points} redeemed points")
        return money_value

    def add_booking_points(self, amount: float, booking_id: str) -> int:
        points = int(amount * BOOKING_POINTS_RATE)
        if points > 0:
            self.add_transaction(
                "point_earned",
                points,
                f"Earned {points} points for booking #{booking_id}",
                is_money=False,
                reference=booking_id,
                booking_id=booking_id,
            )
        return points

    def add_referral_bonus(self, referred_user_id: str) -> WalletTransaction:
        return self.add_transaction(
            "referral_bonus",
            REFERRAL_POINTS,
            "Referral bonus for inviting a new user",
            is_money=False,
            reference=referred_user_id,
        )

    def pay_for_booking(self, amount: float, booking_id: str, service_id: Optional[str] = None) -> WalletTransaction:
        if amount <= 0:
            raise ValueError("Payment amount must be greater than 0")
        if amount > self.balance.money:
            raise ValueError("Insufficient wallet balance")
        return self.add_transaction(
            "booking_payment",
            amount,
            f"Payment for booking #{booking_id}",
            reference=booking_id,
            booking_id=booking_id,
            service_id=service_id,
        )
