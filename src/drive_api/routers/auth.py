import logging
from typing import Optional

from fastapi import APIRouter, Depends

from drive_api.adapters.identity import IdentityProvider
from drive_api.dependencies import get_identity_provider
from drive_api.schemas import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    ResendVerificationRequest,
    VerifyRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth")


@router.post("/register", response_model=MessageResponse)
def register(
    payload: RegisterRequest,
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> MessageResponse:
    """Create an unconfirmed account. Cognito emails a verification code."""
    identity_provider.register(payload.email, payload.password, payload.name)
    return MessageResponse(
        message="User registered successfully. Please check your email for verification."
    )


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> LoginResponse:
    tokens = identity_provider.login(payload.email, payload.password)
    return LoginResponse(
        token=tokens.access_token,
        refreshToken=tokens.refresh_token,
        expiresIn=tokens.expires_in,
    )


@router.post("/verify", response_model=MessageResponse)
def verify(
    payload: VerifyRequest,
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> MessageResponse:
    identity_provider.verify(payload.email, payload.code)
    return MessageResponse(message="Email verified successfully")


@router.post("/resend-verification", response_model=MessageResponse)
def resend_verification(
    payload: Optional[ResendVerificationRequest] = None,
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> MessageResponse:
    email = payload.email if payload else None
    identity_provider.resend_verification(email or "")
    return MessageResponse(message="Verification code resent successfully. Please check your email.")
