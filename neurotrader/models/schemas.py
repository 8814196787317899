from pydantic import BaseModel, Field
from typing import Optional, Union


class _CamelModel(BaseModel):
    class Config:
        populate_by_name = True


class ChatRequest(_CamelModel):
    message: Optional[str] = None
    session_id: Optional[str] = Field(None, alias="sessionId")


class CreateSessionRequest(_CamelModel):
    metadata: Optional[dict] = None


class ProfileRequest(_CamelModel):
    wallet_address: Optional[str] = Field(None, alias="walletAddress")
    username: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = Field("", alias="avatarUrl")


class TransactionRequest(_CamelModel):
    wallet_address: Optional[str] = Field(None, alias="walletAddress")
    type: Optional[str] = None
    amount: Optional[Union[str, float, int]] = None
    symbol: Optional[str] = None
    status: Optional[str] = "completed"
    tx_hash: Optional[str] = Field("", alias="txHash")


class WaitlistJoinRequest(_CamelModel):
    wallet_address: Optional[str] = Field(None, alias="walletAddress")
    name: Optional[str] = None
    email: Optional[str] = None
    reason: Optional[str] = ""


class WaitlistStatusUpdate(BaseModel):
    status: Optional[str] = None
