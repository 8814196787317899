from sqlalchemy import Column, Integer, String, DateTime, Text
from datetime import datetime
from enum import Enum
from neurotrader.db.database import Base


class WaitlistStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class WaitlistEntry(Base):
    __tablename__ = "waitlist"

    id = Column(Integer, primary_key=True, index=True)
    wallet_address = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    reason = Column(Text, nullable=True)
    status = Column(String, nullable=False, default=WaitlistStatus.PENDING.value)
    created_at = Column(DateTime, default=datetime.utcnow)

    # The admin page reads snake_case keys
    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "wallet_address": self.wallet_address,
            "name": self.name,
            "email": self.email,
            "reason": self.reason or "",
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
