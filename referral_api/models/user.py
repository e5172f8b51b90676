# models/user.py
from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, Integer, String
from referral_api.database import Base
from referral_api.services.identifier import ID_LENGTH


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(String(ID_LENGTH), primary_key=True)                      # generated, doubles as referral code
    wallet_address = Column(String, unique=True, index=True, nullable=False)
    referred_by = Column(String(ID_LENGTH), index=True, nullable=True)    # referrer's id, checked by the service
    total_referrals = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<User id={self.id!r} wallet_address={self.wallet_address!r}>"
