from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from neurotrader.models.user import User, Transaction
from neurotrader.exceptions import StorageError
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, wallet_address: str) -> Optional[User]:
        try:
            return self.db.query(User).filter(User.wallet_address == wallet_address).first()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching user profile: {str(e)}")
            raise StorageError("Failed to fetch user profile") from e

    def save_profile(
        self,
        wallet_address: str,
        username: Optional[str],
        email: Optional[str],
        avatar_url: Optional[str] = "",
    ) -> User:
        """Create the profile if it is new, otherwise update its mutable fields"""
        try:
            now = datetime.utcnow()
            user = self.db.query(User).filter(User.wallet_address == wallet_address).first()
            if user is None:
                user = User(wallet_address=wallet_address, created_at=now)
                self.db.add(user)
            user.username = username
            user.email = email
            user.avatar_url = avatar_url or ""
            user.updated_at = now
            self.db.commit()
            self.db.refresh(user)
            return user
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error saving user profile: {str(e)}")
            raise StorageError("Failed to save user profile") from e

    def list_transactions(self, wallet_address: str, limit: int = 10) -> List[Transaction]:
        try:
            return self.db.query(Transaction).filter(
                Transaction.wallet_address == wallet_address
            ).order_by(Transaction.timestamp.desc(), Transaction.id.desc()).limit(limit).all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching user transactions: {str(e)}")
            raise StorageError("Failed to fetch transactions") from e

    def add_transaction(
        self,
        wallet_address: str,
        type: str,
        amount,
        symbol: Optional[str] = None,
        status: Optional[str] = "completed",
        tx_hash: Optional[str] = "",
    ) -> Transaction:
        try:
            transaction = Transaction(
                wallet_address=wallet_address,
                type=type,
                amount=str(amount),
                symbol=symbol,
                status=status or "completed",
                tx_hash=tx_hash or "",
                timestamp=datetime.utcnow(),
            )
            self.db.add(transaction)
            self.db.commit()
            self.db.refresh(transaction)
            return transaction
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error adding transaction: {str(e)}")
            raise StorageError("Failed to add transaction") from e
