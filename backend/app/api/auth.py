import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..models.user import (
    AuthResponse,
    AuthSession,
    GoogleSignInRequest,
    LoginRequest,
    RegisterRequest,
    SessionUser,
)
from ..core.db import get_identity
from ..core.errors import AuthError
from ..services.identity import IdentityProvider

router = APIRouter()
security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


def _to_response(session: AuthSession) -> AuthResponse:
    return AuthResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        user=session.user,
    )


# MARK: - Authentication Helper
async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    identity: IdentityProvider = Depends(get_identity),
) -> SessionUser:
    """从 Bearer token 解析当前用户"""
    if not credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    try:
        user = identity.get_user(credentials.credentials)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)

    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return user


# MARK: - Auth Endpoints
@router.post("/register", response_model=AuthResponse)
async def register(request: RegisterRequest, identity: IdentityProvider = Depends(get_identity)):
    """邮箱注册"""
    logger.info(f"[REGISTER] 开始注册: email={request.email}")
    try:
        session = identity.sign_up(request.email, request.password, full_name=request.full_name)
    except AuthError as e:
        logger.error(f"[REGISTER] 注册失败: email={request.email}, error={e.message}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    if not session.access_token:
        logger.warning(f"[REGISTER] 注册成功但需要邮箱验证: email={request.email}")
    else:
        logger.info(f"[REGISTER] 注册成功: user_id={session.user.uid}")
    return _to_response(session)


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, identity: IdentityProvider = Depends(get_identity)):
    """邮箱密码登录"""
    logger.info(f"[LOGIN] 登录请求: email={request.email}")
    try:
        session = identity.sign_in_with_password(request.email, request.password)
    except AuthError as e:
        logger.warning(f"[LOGIN] 登录失败: email={request.email}, error={e.message}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)

    logger.info(f"[LOGIN] 登录成功: user_id={session.user.uid}")
    return _to_response(session)


@router.post("/google/signin", response_model=AuthResponse)
async def google_signin(request: GoogleSignInRequest, identity: IdentityProvider = Depends(get_identity)):
    """Google Sign-In - 使用 idToken 登录"""
    logger.info("[GOOGLE-SIGNIN] 开始 Google 登录")
    try:
        session = identity.sign_in_with_google(request.id_token)
    except AuthError as e:
        logger.error(f"[GOOGLE-SIGNIN] 异常: {e.message}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)

    logger.info(f"[GOOGLE-SIGNIN] 登录成功: user_id={session.user.uid}")
    return _to_response(session)


@router.post("/logout")
async def logout(
    current_user: SessionUser = Depends(get_current_user),
    identity: IdentityProvider = Depends(get_identity),
):
    """用户登出"""
    try:
        identity.sign_out()
    except AuthError as e:
        logger.error(f"[LOGOUT] 登出失败: user_id={current_user.uid}, error={e.message}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)

    logger.info(f"[LOGOUT] 登出成功: user_id={current_user.uid}")
    return {"message": "Signed out"}


@router.get("/me", response_model=SessionUser)
async def me(current_user: SessionUser = Depends(get_current_user)):
    return current_user
