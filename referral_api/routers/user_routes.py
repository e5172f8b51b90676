from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from referral_api.core.exceptions import ValidationError
from referral_api.database import get_db
from referral_api.schemas.user_schema import (
    BulkLookupRequest,
    BulkLookupResponse,
    ReferralOwner,
    RegisterReferredRequest,
    RegisterReferredResponse,
    RegisterRequest,
    RegisterResponse,
    UserProfile,
)
from referral_api.services.registration import RegistrationService

router = APIRouter(tags=["Referrals"])


def get_registration_service(db: Session = Depends(get_db)) -> RegistrationService:
    return RegistrationService(db)


@router.get("/user/{wallet_address}", response_model=UserProfile)
def get_user(wallet_address: str, service: RegistrationService = Depends(get_registration_service)):
    return service.lookup_by_wallet(wallet_address)


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, service: RegistrationService = Depends(get_registration_service)):
    return service.register(payload.wallet_address)


@router.get("/referral/{userid}", response_model=ReferralOwner)
def get_referral_owner(userid: str, service: RegistrationService = Depends(get_registration_service)):
    return service.lookup_by_identifier(userid)


@router.post(
    "/register-referred",
    response_model=RegisterReferredResponse,
    status_code=status.HTTP_201_CREATED,
)
def register_referred(
    payload: RegisterReferredRequest,
    service: RegistrationService = Depends(get_registration_service),
):
    return service.register_referred(payload.wallet_address, payload.referred_by)


@router.post("/bulk-lookup", response_model=BulkLookupResponse)
def bulk_lookup(payload: BulkLookupRequest, service: RegistrationService = Depends(get_registration_service)):
    addresses = payload.wallet_addresses
    if not isinstance(addresses, list) or not all(isinstance(a, str) for a in addresses):
        raise ValidationError("wallet_addresses must be an array")

    return BulkLookupResponse(mapping=service.bulk_lookup(addresses))
