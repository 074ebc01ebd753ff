"""Authentication endpoints."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status

from api.deps import (
    get_current_user,
    get_registration_workflow,
    get_session_manager,
    get_token_service,
)
from models import User
from services import StagedAsset, release, stage_upload
from services.accounts import (
    REFRESH_COOKIE,
    AccountView,
    LoginRequest,
    RegistrationRequest,
    RegistrationWorkflow,
    SessionManager,
    TokenService,
    clear_token_cookies,
    set_token_cookies,
)
from services.accounts.schemas import LoginResponse, RefreshRequest, TokenPairResponse
from services.accounts.tokens import SessionTokenPair

router = APIRouter(prefix="/auth", tags=["auth"])


async def _stage_optional(upload: UploadFile | None, *, field: str) -> StagedAsset | None:
    if upload is None or not upload.filename:
        return None
    # Decoding is checked by the workflow once the form fields are valid.
    return await stage_upload(upload, field=field, verify=False)


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=AccountView)
async def register(
    username: Annotated[str | None, Form()] = None,
    email: Annotated[str | None, Form()] = None,
    full_name: Annotated[str | None, Form()] = None,
    password: Annotated[str | None, Form()] = None,
    avatar: Annotated[UploadFile | None, File()] = None,
    cover_image: Annotated[UploadFile | None, File()] = None,
    workflow: RegistrationWorkflow = Depends(get_registration_workflow),
) -> AccountView:
    avatar_asset = await _stage_optional(avatar, field="avatar")
    try:
        cover_asset = await _stage_optional(cover_image, field="cover_image")
    except Exception:
        release(avatar_asset)
        raise

    return await workflow.register(
        RegistrationRequest(
            username=username,
            email=email,
            full_name=full_name,
            password=password,
            avatar=avatar_asset,
            cover_image=cover_asset,
        )
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    sessions: SessionManager = Depends(get_session_manager),
    tokens: TokenService = Depends(get_token_service),
) -> LoginResponse:
    result = await sessions.login(payload)
    set_token_cookies(
        response,
        SessionTokenPair(result.access_token, result.refresh_token),
        tokens,
    )
    return LoginResponse(
        user=result.user,
        access_token=result.access_token,
        refresh_token=result.refresh_token,
    )


@router.post("/refresh", response_model=TokenPairResponse)
async def refresh_tokens(
    request: Request,
    response: Response,
    payload: RefreshRequest | None = None,
    sessions: SessionManager = Depends(get_session_manager),
    tokens: TokenService = Depends(get_token_service),
) -> TokenPairResponse:
    # Browsers send the cookie; other clients post the token in the body.
    presented = request.cookies.get(REFRESH_COOKIE)
    if not presented and payload is not None:
        presented = payload.refresh_token

    pair = await sessions.refresh(presented)
    set_token_cookies(response, pair, tokens)
    return TokenPairResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
    )


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(
    response: Response,
    current_user: User = Depends(get_current_user),
    sessions: SessionManager = Depends(get_session_manager),
) -> dict[str, Any]:
    await sessions.logout(current_user.id)
    clear_token_cookies(response)
    return {"detail": "User logged out"}
