from fastapi import APIRouter, Depends, Query
import logging

from neurotrader.exceptions import DuplicateError, ValidationError
from neurotrader.models.schemas import WaitlistJoinRequest, WaitlistStatusUpdate
from neurotrader.routers.deps import get_waitlist_service
from neurotrader.services.waitlist_service import WaitlistService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/waitlist", tags=["Waitlist"])
admin_router = APIRouter(prefix="/api/admin", tags=["Admin - Waitlist"])

ALREADY_REGISTERED = "This wallet address is already registered on the waitlist"


@router.get("/check")
def check_waitlist(
    wallet_address: str | None = Query(None, alias="walletAddress"),
    waitlist: WaitlistService = Depends(get_waitlist_service),
):
    if not wallet_address:
        raise ValidationError("Wallet address is required")
    return {"exists": waitlist.check_exists(wallet_address)["exists"]}


@router.post("/join", status_code=201)
def join_waitlist(data: WaitlistJoinRequest, waitlist: WaitlistService = Depends(get_waitlist_service)):
    for field, value in (("walletAddress", data.wallet_address), ("name", data.name), ("email", data.email)):
        if not value or not value.strip():
            raise ValidationError(f"{field} is required")

    # Friendly early answer; the unique constraint still decides races
    if waitlist.check_exists(data.wallet_address)["exists"]:
        raise DuplicateError(ALREADY_REGISTERED)

    entry = waitlist.add(data.wallet_address, data.name, data.email, data.reason)
    return entry.to_dict()


@router.get("/count")
def waitlist_count(waitlist: WaitlistService = Depends(get_waitlist_service)):
    return {"count": waitlist.count()}


@admin_router.get("/waitlist")
def list_waitlist(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    status: str | None = Query(None),
    waitlist: WaitlistService = Depends(get_waitlist_service),
):
    entries = waitlist.list(limit=limit, offset=offset, status=status)
    return {"entries": [entry.to_dict() for entry in entries]}


@admin_router.put("/waitlist/{entry_id}/status")
def update_waitlist_status(
    entry_id: int,
    data: WaitlistStatusUpdate,
    waitlist: WaitlistService = Depends(get_waitlist_service),
):
    if not data.status:
        raise ValidationError("status is required")

    entry = waitlist.update_status(entry_id, data.status)
    logger.info(f"Waitlist entry {entry_id} set to {entry.status}")
    return entry.to_dict()
