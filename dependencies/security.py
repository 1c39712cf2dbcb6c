from typing import Optional, Annotated
from fastapi import Header, HTTPException
from pydantic import BaseModel, ConfigDict
from config.settings import settings
from models.users import UserRole
from services.exceptions import AuthorizationError
import hmac

AuthHeader = Annotated[Optional[str], Header(alias="Authorization")]
UserIdHeader = Annotated[Optional[int], Header(alias="X-User-Id")]
UserRoleHeader = Annotated[Optional[str], Header(alias="X-User-Role")]


class AuthContext(BaseModel):
    """
    서비스 함수에 명시적으로 넘기는 호출자 정보 (전역 세션 조회 대신 사용)
    - student 역할이면 user_id == students.id
    """
    user_id: int
    role: UserRole

    model_config = ConfigDict(frozen=True)


def require_role(auth: Optional[AuthContext], *roles: UserRole) -> AuthContext:
    """역할 검사. 실패 시 AuthorizationError (서비스에서 Err 로 변환)"""
    if auth is None:
        raise AuthorizationError("Authentication required")
    if auth.role not in roles:
        raise AuthorizationError("You do not have permission to perform this action")
    return auth


def _unauthorized(detail: str):
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_auth_context(
    authorization: AuthHeader = None,
    user_id: UserIdHeader = None,
    user_role: UserRoleHeader = None,
) -> AuthContext:
    # 설정 누락 방지: 환경에서 토큰이 비어있으면 개발 중 오류를 명확히 드러냄
    if not getattr(settings, "GATEWAY_TOKEN", None):
        raise HTTPException(status_code=500, detail="Server token not configured")

    if not authorization:
        raise _unauthorized("Missing Authorization header")

    # "Bearer <token>" 파싱
    try:
        scheme, token = authorization.split(" ", 1)
    except ValueError:
        raise _unauthorized("Invalid Authorization header format")

    if scheme.lower() != "bearer":
        raise _unauthorized("Invalid auth scheme")

    # 타이밍 안전 비교
    if not hmac.compare_digest(token.strip(), settings.GATEWAY_TOKEN):
        raise _unauthorized("Invalid token")

    if user_id is None or not user_role:
        raise _unauthorized("Missing X-User-Id / X-User-Role headers")

    try:
        role = UserRole(user_role.strip().lower())
    except ValueError:
        raise _unauthorized(f"Unknown role: {user_role}")

    return AuthContext(user_id=user_id, role=role)
