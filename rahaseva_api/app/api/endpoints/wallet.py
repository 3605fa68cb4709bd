"""Wallet and reward point endpoints.  All operate on the caller's own wallet."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from rahaseva_api.app.api.deps import get_store
from rahaseva_api.app.core.errors import service_errors
from rahaseva_api.app.core.security import require_user
from rahaseva_api.app.schemas.wallet import AddMoneyRequest, RedeemRequest, ReferralRequest, WalletPaymentRequest
from rahaseva_api.app.services.wallet_service import WalletService
from rahaseva_api.app.store import DocumentStore

router = APIRouter()


@router.get("")
async def get_wallet(
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    """Return the wallet (creating it on first access) and the last 10 transactions."""
    wallet = await WalletService.get_or_create(store, current_user["id"])
    return {"success": True, "data": WalletService.overview(wallet)}


@router.post("/add")
async def add_money(
    request: AddMoneyRequest,
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    with service_errors():
        wallet = await WalletService.add_money(store, current_user["id"], request)
    return {
        "success": True,
        "message": f"Successfully added ₹{request.amount:.2f} to wallet",
        "data": {
            "current_balance": wallet.formatted_balance,
            "transaction": wallet.transactions[-1].model_dump(mode="json"),
        },
    }


@router.post("/redeem")
async def redeem_points(
    request: RedeemRequest,
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    with service_errors():
        wallet = await WalletService.redeem(store, current_user["id"], request)
    return {
        "success": True,
        "message": f"Successfully redeemed {request.points} points",
        "data": {"current_balance": wallet.formatted_balance, "reward_level": wallet.reward_level},
    }


@router.post("/referral")
async def apply_referral_code(
    request: ReferralRequest,
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    with service_errors():
        wallet = await WalletService.apply_referral(store, current_user["id"], request)
    return {
        "success": True,
        "message": "Referral code applied successfully. You earned 100 bonus points!",
        "data": {"current_balance": wallet.formatted_balance},
    }


@router.get("/transactions")
async def get_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    with service_errors():
        result = await WalletService.transactions(store, current_user["id"], page=page, limit=limit)
    return {"success": True, **result}


@router.get("/rewards")
async def get_rewards(
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    with service_errors():
        data = await WalletService.rewards(store, current_user["id"])
    return {"success": True, "data": data}


@router.post("/pay")
async def pay_from_wallet(
    request: WalletPaymentRequest,
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    with service_errors():
        wallet = await WalletService.pay(store, current_user["id"], request)
    return {
        "success": True,
        "message": f"Payment of ₹{request.amount:.2f} made successfully",
        "data": {
            "current_balance": wallet.formatted_balance,
            "transaction": wallet.transactions[-1].model_dump(mode="json"),
        },
    }
