"""Registration and lookup of referral users"""

import logging
from typing import Callable, Iterable, Optional, TypeVar

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from referral_api.core.config import Settings, settings as default_settings
from referral_api.core.exceptions import ConflictError, NotFoundError, ReferralError, StoreError, ValidationError
from referral_api.models.user import User
from referral_api.schemas.user_schema import (
    ReferralOwner,
    RegisterReferredResponse,
    RegisterResponse,
    UserProfile,
)
from referral_api.services.identifier import generate_user_id

logger = logging.getLogger(__name__)

DUPLICATE_WALLET = "This wallet address is already registered."

# keeps each IN (...) under SQLite's bound-parameter limit
BULK_LOOKUP_BATCH_SIZE = 500

T = TypeVar("T")


def _is_blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


class RegistrationService:
    """
    Creates users, links them to their referrer and answers lookups.

    Every write runs as one transaction on ``db``: it is committed when the
    operation succeeds and rolled back on any error, so a failed referral
    never touches the referrer's counter.
    """

    def __init__(
        self,
        db: Session,
        settings: Settings = default_settings,
        id_factory: Callable[[], str] = generate_user_id,
    ):
        self.db = db
        self.settings = settings
        self.id_factory = id_factory

    # ---------- Writes ----------

    def register(self, wallet_address: Optional[str]) -> RegisterResponse:
        if _is_blank(wallet_address):
            raise ValidationError("Missing wallet_address")

        def create() -> RegisterResponse:
            self._ensure_wallet_free(wallet_address)

            user = User(id=self.id_factory(), wallet_address=wallet_address, total_referrals=0)
            self.db.add(user)
            self.db.flush()

            return RegisterResponse(
                userid=user.id,
                wallet_address=user.wallet_address,
                referral_link=self.settings.referral_link(user.id),
            )

        result = self._commit_with_retry(wallet_address, create)
        logger.info("Registered %s as %s", result.wallet_address, result.userid)
        return result

    def register_referred(
        self, wallet_address: Optional[str], referred_by: Optional[str]
    ) -> RegisterReferredResponse:
        if _is_blank(wallet_address) or _is_blank(referred_by):
            raise ValidationError("Missing wallet_address or referred_by")

        def create() -> RegisterReferredResponse:
            # duplicate wallet is reported before an unknown referrer
            self._ensure_wallet_free(wallet_address)

            # row lock serialises concurrent referrals of the same referrer (no-op on SQLite)
            referrer_id = (
                self.db.query(User.id)
                .filter(User.id == referred_by)
                .with_for_update()
                .scalar()
            )
            if referrer_id is None:
                raise NotFoundError("Referrer not found")

            user = User(
                id=self.id_factory(),
                wallet_address=wallet_address,
                referred_by=referrer_id,
                total_referrals=0,
            )
            self.db.add(user)
            self.db.flush()

            self.db.execute(
                update(User)
                .where(User.id == referrer_id)
                .values(total_referrals=User.total_referrals + 1)
                .execution_options(synchronize_session=False)
            )
            new_total = self.db.query(User.total_referrals).filter(User.id == referrer_id).scalar()

            return RegisterReferredResponse(
                userid=user.id,
                wallet_address=user.wallet_address,
                referrer_new_total=new_total,
            )

        result = self._commit_with_retry(wallet_address, create)
        logger.info(
            "Registered %s as %s (referred by %s, now %d referrals)",
            result.wallet_address, result.userid, referred_by, result.referrer_new_total,
        )
        return result

    # ---------- Reads ----------

    def lookup_by_wallet(self, wallet_address: str) -> UserProfile:
        user = self.db.query(User).filter(User.wallet_address == wallet_address).first()
        if not user:
            raise NotFoundError("User not found")

        return UserProfile(
            userid=user.id,
            wallet_address=user.wallet_address,
            referred_by=user.referred_by,
            referred_users=self.referred_users(user.id),
            total_referrals=user.total_referrals,
            created_at=user.created_at,
        )

    def lookup_by_identifier(self, userid: str) -> ReferralOwner:
        user = self.db.query(User).filter(User.id == userid).first()
        if not user:
            raise NotFoundError("Invalid referral code")

        return ReferralOwner(userid=user.id, referring_wallet=user.wallet_address)

    def referred_users(self, userid: str) -> list[str]:
        """Ids of the users ``userid`` referred, oldest first."""
        rows = (
            self.db.query(User.id)
            .filter(User.referred_by == userid)
            .order_by(User.created_at, User.id)
            .all()
        )
        return [row.id for row in rows]

    def bulk_lookup(self, wallet_addresses: Iterable[str]) -> dict[str, str]:
        wanted = sorted({address for address in wallet_addresses if address})

        mapping: dict[str, str] = {}
        for start in range(0, len(wanted), BULK_LOOKUP_BATCH_SIZE):
            batch = wanted[start:start + BULK_LOOKUP_BATCH_SIZE]
            rows = (
                self.db.query(User.wallet_address, User.id)
                .filter(User.wallet_address.in_(batch))
                .all()
            )
            mapping.update({row.wallet_address: row.id for row in rows})
        return mapping

    # ---------- Helpers ----------

    def _ensure_wallet_free(self, wallet_address: str) -> None:
        if self._wallet_exists(wallet_address):
            raise ConflictError(DUPLICATE_WALLET)

    def _wallet_exists(self, wallet_address: str) -> bool:
        return (
            self.db.query(User.id).filter(User.wallet_address == wallet_address).first()
            is not None
        )

    def _commit_with_retry(self, wallet_address: str, create: Callable[[], T]) -> T:
        """Run ``create`` and commit, regenerating the id on a primary key collision.

        An IntegrityError means either the wallet was registered concurrently
        (reported as a conflict) or the generated id was already taken (retried).
        """
        attempts = max(1, self.settings.ID_GENERATION_ATTEMPTS)
        for attempt in range(1, attempts + 1):
            try:
                result = create()
                self.db.commit()
                return result
            except IntegrityError as exc:
                self.db.rollback()
                if self._wallet_exists(wallet_address):
                    raise ConflictError(DUPLICATE_WALLET) from exc
                logger.warning("User id collision (attempt %d/%d), generating a new id", attempt, attempts)
            except ReferralError:
                self.db.rollback()
                raise
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.exception("Database error while registering %s", wallet_address)
                raise StoreError(str(exc)) from exc

        raise StoreError(f"Could not generate a unique user id after {attempts} attempts")
