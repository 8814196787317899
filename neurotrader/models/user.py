from sqlalchemy import Column, Integer, String, DateTime
from datetime import datetime
from neurotrader.db.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    wallet_address = Column(String, unique=True, nullable=False, index=True)
    username = Column(String, nullable=True)
    email = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "walletAddress": self.wallet_address,
            "username": self.username or "",
            "email": self.email or "",
            "avatarUrl": self.avatar_url or "",
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    # References users.wallet_address without enforcing it; transactions may be
    # logged before a profile is saved.
    wallet_address = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False)
    amount = Column(String, nullable=False)
    symbol = Column(String, nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow)
    status = Column(String, default="completed")
    tx_hash = Column(String, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "walletAddress": self.wallet_address,
            "type": self.type,
            "amount": self.amount,
            "symbol": self.symbol,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "status": self.status,
            "txHash": self.tx_hash or "",
        }
