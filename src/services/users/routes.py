# src/services/users/routes.py
"""
HTTP API User Service.

Создание профиля, поиск по email, завершение KYC и статус KYC
доступны только доверенным сервисам.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.services.users.dependencies import get_profile_service
from src.services.users.service import UserProfileService
from src.shared.middleware.service_trust import require_internal_request
from src.shared.models.profile import (
    CustomerProfile,
    KycCompleteRequest,
    KycStatusResponse,
    KycSubmitRequest,
    ProfileCreateRequest,
    ProfileUpdateRequest,
)
from src.shared.models.trace import RequestTrace

router = APIRouter(prefix="/users", tags=["users"])


async def _get_profile_or_404(user_id: int, service: UserProfileService) -> CustomerProfile:
    profile = await service.get_profile(user_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.post("/profile", response_model=CustomerProfile, status_code=status.HTTP_201_CREATED)
async def create_profile(
    request: ProfileCreateRequest,
    trace: RequestTrace = Depends(require_internal_request),
    service: UserProfileService = Depends(get_profile_service),
):
    try:
        return await service.create_profile(request)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get("/by-email", response_model=CustomerProfile)
async def get_profile_by_email(
    email: str = Query(min_length=3),
    trace: RequestTrace = Depends(require_internal_request),
    service: UserProfileService = Depends(get_profile_service),
):
    profile = await service.get_profile_by_email(email)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.get("/{user_id}/profile", response_model=CustomerProfile)
async def get_profile(
    user_id: int,
    service: UserProfileService = Depends(get_profile_service),
):
    return await _get_profile_or_404(user_id, service)


@router.put("/{user_id}/profile", response_model=CustomerProfile)
async def update_profile(
    user_id: int,
    request: ProfileUpdateRequest,
    service: UserProfileService = Depends(get_profile_service),
):
    profile = await service.update_profile(user_id, request)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.post("/{user_id}/kyc", response_model=CustomerProfile)
async def submit_kyc(
    user_id: int,
    request: KycSubmitRequest,
    service: UserProfileService = Depends(get_profile_service),
):
    profile = await service.submit_kyc(user_id, request.documents)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.post("/{user_id}/kyc/complete", response_model=CustomerProfile)
async def complete_kyc(
    user_id: int,
    request: KycCompleteRequest,
    trace: RequestTrace = Depends(require_internal_request),
    service: UserProfileService = Depends(get_profile_service),
):
    try:
        profile = await service.complete_kyc(user_id, request.status)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.get("/{user_id}/kyc-status", response_model=KycStatusResponse)
async def kyc_status(
    user_id: int,
    trace: RequestTrace = Depends(require_internal_request),
    service: UserProfileService = Depends(get_profile_service),
):
    profile = await _get_profile_or_404(user_id, service)
    return KycStatusResponse(
        user_id=profile.user_id,
        verification_status=profile.verification_status,
        verified=profile.is_verified,
    )
