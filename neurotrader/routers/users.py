from fastapi import APIRouter, Depends, Query

from neurotrader.exceptions import ValidationError
from neurotrader.models.schemas import ProfileRequest, TransactionRequest
from neurotrader.routers.deps import get_user_service
from neurotrader.services.user_service import UserService

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/profile")
def get_profile(
    wallet_address: str | None = Query(None, alias="walletAddress"),
    users: UserService = Depends(get_user_service),
):
    if not wallet_address:
        raise ValidationError("Wallet address is required")

    user = users.get_profile(wallet_address)
    if user is None:
        # Unknown wallets get an empty profile rather than a 404
        return {
            "walletAddress": wallet_address,
            "username": "",
            "email": "",
            "avatarUrl": "",
        }
    return user.to_dict()


@router.post("/profile")
def save_profile(data: ProfileRequest, users: UserService = Depends(get_user_service)):
    if not data.wallet_address:
        raise ValidationError("Wallet address is required")

    user = users.save_profile(data.wallet_address, data.username, data.email, data.avatar_url)
    return user.to_dict()


@router.get("/transactions")
def list_transactions(
    wallet_address: str | None = Query(None, alias="walletAddress"),
    limit: int = Query(10, ge=1, le=500),
    users: UserService = Depends(get_user_service),
):
    if not wallet_address:
        raise ValidationError("Wallet address is required")

    transactions = users.list_transactions(wallet_address, limit)
    return {"transactions": [t.to_dict() for t in transactions]}


@router.post("/transactions")
def add_transaction(data: TransactionRequest, users: UserService = Depends(get_user_service)):
    if not data.wallet_address or not data.type or data.amount in (None, ""):
        raise ValidationError("Wallet address, type, and amount are required")

    transaction = users.add_transaction(
        data.wallet_address,
        data.type,
        data.amount,
        symbol=data.symbol,
        status=data.status,
        tx_hash=data.tx_hash,
    )
    return transaction.to_dict()
