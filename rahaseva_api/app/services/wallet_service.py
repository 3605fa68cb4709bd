"""
Business logic for wallets and reward points.

A wallet is created lazily the first time a user touches it.  All
amounts are validated here before the ``Wallet`` model methods apply
them, so model errors only surface for genuinely inconsistent state.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from rahaseva_api.app.models import Booking, Wallet
from rahaseva_api.app.models.wallet import MIN_REDEEMABLE_POINTS, REFERRAL_POINTS, REWARD_BENEFITS
from rahaseva_api.app.schemas.wallet import AddMoneyRequest, RedeemRequest, ReferralRequest, WalletPaymentRequest
from rahaseva_api.app.store import DocumentStore

from .booking_service import BookingService, paginate

logger = logging.getLogger(__name__)

UNPAYABLE_STATUSES = ("cancelled", "refunded")


class WalletService:
    """Service for wallet balances, points and payments."""

    @classmethod
    async def get_or_create(cls, store: DocumentStore, user_id: str) -> Wallet:
        wallet = await Wallet.find_one(store, user=user_id)
        if wallet is None:
            wallet = Wallet(user=user_id)
            await wallet.save(store)
            logger.info("Created wallet for user %s", user_id)
        return wallet

    @classmethod
    async def get_existing(cls, store: DocumentStore, user_id: str) -> Wallet:
        wallet = await Wallet.find_one(store, user=user_id)
        if wallet is None:
            raise LookupError("Wallet not found")
        return wallet

    @classmethod
    def overview(cls, wallet: Wallet) -> Dict[str, Any]:
        return {
            "wallet": wallet.model_dump(
                mode="json",
                include={
                    "balance",
                    "formatted_balance",
                    "reward_level",
                    "referral_code",
                    "last_updated",
                    "total_earned",
                    "total_spent",
                },
            ),
            "transactions": [t.model_dump(mode="json") for t in wallet.recent_transactions(limit=10)],
        }

    @classmethod
    async def add_money(cls, store: DocumentStore, user_id: str, request: AddMoneyRequest) -> Wallet:
        if request.amount is None or request.amount <= 0:
            raise ValueError("Valid amount greater than 0 is required")
        wallet = await cls.get_or_create(store, user_id)
        wallet.add_transaction(
            "credit",
            request.amount,
            f"Added ₹{request.amount:.2f} via {request.payment_method or 'online payment'}",
            reference=request.transaction_id,
        )
        await wallet.save(store)
        return wallet

    @classmethod
    async def redeem(cls, store: DocumentStore, user_id: str, request: RedeemRequest) -> Wallet:
        if request.points is None or request.points <= 0:
            raise ValueError("Valid number of points greater than 0 is required")
        wallet = await cls.get_existing(store, user_id)
        if wallet.balance.points < request.points:
            raise ValueError("Insufficient points balance")
        if request.points < MIN_REDEEMABLE_POINTS:
            raise ValueError(f"Minimum {MIN_REDEEMABLE_POINTS} points required for redemption")
        wallet.redeem_points(request.points)
        await wallet.save(store)
        return wallet

    @classmethod
    async def apply_referral(cls, store: DocumentStore, user_id: str, request: ReferralRequest) -> Wallet:
        code = (request.referral_code or "").strip()
        if not code:
            raise ValueError("Referral code is required")
        referrer_wallet = await Wallet.find_one(store, referral_code=code)
        if referrer_wallet is None:
            raise LookupError("Invalid referral code")
        if referrer_wallet.user == user_id:
            raise ValueError("Cannot use your own referral code")

        wallet = await cls.get_or_create(store, user_id)
        if wallet.referred_by:
            raise ValueError("You have already used a referral code")

        wallet.referred_by = referrer_wallet.user
        wallet.add_transaction(
            "point_earned",
            REFERRAL_POINTS,
            f"Welcome bonus for using referral code {code}",
            is_money=False,
        )
        await wallet.save(store)
        referrer_wallet.add_referral_bonus(user_id)
        await referrer_wallet.save(store)
        logger.info("User %s referred by %s", user_id, referrer_wallet.user)
        return wallet

    @classmethod
    async def transactions(cls, store: DocumentStore, user_id: str, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        wallet = await cls.get_existing(store, user_id)
        ordered = wallet.recent_transactions(limit=len(wallet.transactions))
        result = paginate([t.model_dump(mode="json") for t in ordered], page, limit)
        result["data"] = result.pop("items")
        return result

    @classmethod
    async def rewards(cls, store: DocumentStore, user_id: str) -> Dict[str, Any]:
        wallet = await cls.get_existing(store, user_id)
        points = wallet.balance.points
        benefits = dict(REWARD_BENEFITS[wallet.reward_level])
        next_at = benefits.pop("next_level_at")
        benefits["points_to_next_level"] = max(next_at - points, 0) if next_at else 0

        month_start = datetime.now(timezone.utc).replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        earned_this_month = sum(
            t.amount
            for t in wallet.transactions
            if not t.is_money and t.type in ("point_earned", "referral_bonus") and t.created_at >= month_start
        )
        return {
            "current_points": points,
            "current_level": wallet.reward_level,
            "benefits": benefits,
            "points_earned_this_month": int(earned_this_month),
        }

    @classmethod
    async def pay(cls, store: DocumentStore, user_id: str, request: WalletPaymentRequest) -> Wallet:
        """Pay for a booking from the money balance.

        When the booking exists and belongs to the caller it is marked as
        paid by wallet.  Settled or closed bookings are rejected
        before any money moves.
        """
        if not request.booking_id or not request.amount:
            raise ValueError("Booking ID and amount are required")
        if request.amount <= 0:
            raise ValueError("Valid amount greater than 0 is required")
        wallet = await cls.get_existing(store, user_id)
        if wallet.balance.money < request.amount:
            raise ValueError("Insufficient wallet balance")

        booking: Optional[Booking] = None
        try:
            booking = await BookingService.resolve(store, request.booking_id)
        except LookupError:
            logger.info("Wallet payment for unknown booking %s", request.booking_id)
        if booking is not None and booking.user != user_id:
            raise PermissionError("Not authorized to pay for this booking")
        if booking is not None and booking.payment.status == "paid":
            raise ValueError("Booking has already been paid")
        if booking is not None and booking.status in UNPAYABLE_STATUSES:
            raise ValueError(f"Cannot pay for a {booking.status} booking")

        wallet.pay_for_booking(request.amount, booking.booking_id if booking else request.booking_id, request.service_id)
        await wallet.save(store)

        if booking is not None:
            booking.payment.method = "wallet"
            booking.payment.status = "paid"
            booking.payment.paid_at = datetime.now(timezone.utc)
            await booking.save(store)
        return wallet
