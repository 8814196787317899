from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from neurotrader.models.waitlist import WaitlistEntry, WaitlistStatus
from neurotrader.exceptions import DuplicateError, NotFoundError, StorageError, ValidationError
from datetime import datetime
import logging

logger = logging.getLogger(__name__)

STATUSES = tuple(s.value for s in WaitlistStatus)


def validate_status(status: Optional[str]) -> str:
    if status not in STATUSES:
        raise ValidationError(f"Invalid status {status!r}, must be one of: {', '.join(STATUSES)}")
    return status


class WaitlistService:
    def __init__(self, db: Session):
        self.db = db

    def check_exists(self, wallet_address: str) -> dict:
        try:
            entry = self.db.query(WaitlistEntry).filter(
                WaitlistEntry.wallet_address == wallet_address
            ).first()
        except SQLAlchemyError as e:
            logger.error(f"Error checking waitlist: {str(e)}")
            raise StorageError("Failed to check waitlist") from e
        return {"exists": entry is not None, "entry": entry}

    def add(self, wallet_address: str, name: str, email: str, reason: Optional[str] = "") -> WaitlistEntry:
        """Insert a new entry; the unique constraint on the wallet address is the
        authority on duplicates, whatever a caller checked beforehand."""
        entry = WaitlistEntry(
            wallet_address=wallet_address,
            name=name,
            email=email,
            reason=reason or "",
            status=WaitlistStatus.PENDING.value,
            created_at=datetime.utcnow(),
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.info(f"Duplicate waitlist join for {wallet_address}")
            raise DuplicateError("This wallet address is already registered on the waitlist") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error adding to waitlist: {str(e)}")
            raise StorageError("Failed to join waitlist") from e
        self.db.refresh(entry)
        logger.info(f"Wallet {wallet_address} joined the waitlist")
        return entry

    def count(self) -> int:
        try:
            return self.db.query(func.count(WaitlistEntry.id)).scalar() or 0
        except SQLAlchemyError as e:
            logger.error(f"Error counting waitlist: {str(e)}")
            raise StorageError("Failed to count waitlist") from e

    def list(self, limit: int = 100, offset: int = 0, status: Optional[str] = None) -> List[WaitlistEntry]:
        """Entries newest first, optionally filtered by status"""
        if status:
            validate_status(status)
        try:
            query = self.db.query(WaitlistEntry)
            if status:
                query = query.filter(WaitlistEntry.status == status)
            return query.order_by(
                WaitlistEntry.created_at.desc(), WaitlistEntry.id.desc()
            ).limit(limit).offset(offset).all()
        except SQLAlchemyError as e:
            logger.error(f"Error listing waitlist: {str(e)}")
            raise StorageError("Failed to list waitlist") from e

    def update_status(self, entry_id: int, status: Optional[str]) -> WaitlistEntry:
        validate_status(status)
        try:
            entry = self.db.query(WaitlistEntry).filter(WaitlistEntry.id == entry_id).first()
            if entry is None:
                raise NotFoundError(f"Waitlist entry {entry_id} not found")
            entry.status = status
            self.db.commit()
            self.db.refresh(entry)
            return entry
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating waitlist status: {str(e)}")
            raise StorageError("Failed to update waitlist status") from e
