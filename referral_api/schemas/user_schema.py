# schemas/user_schema.py
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class RegisterRequest(BaseModel):
    wallet_address: Optional[str] = None


class RegisterReferredRequest(BaseModel):
    wallet_address: Optional[str] = None
    referred_by: Optional[str] = None


class BulkLookupRequest(BaseModel):
    # type is checked by the route so a non-array gets its own error message
    wallet_addresses: Any = None


class RegisterResponse(BaseModel):
    message: str = "User registered successfully"
    userid: str
    wallet_address: str
    referral_link: str


class RegisterReferredResponse(BaseModel):
    message: str = "User registered with referral successfully"
    userid: str
    wallet_address: str
    referrer_new_total: int


class UserProfile(BaseModel):
    userid: str
    wallet_address: str
    referred_by: Optional[str] = None
    referred_users: list[str] = []
    total_referrals: int
    created_at: datetime


class ReferralOwner(BaseModel):
    userid: str
    referring_wallet: str


class BulkLookupResponse(BaseModel):
    mapping: dict[str, str]
