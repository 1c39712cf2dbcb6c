"""
services/exceptions.py

서비스 계층에서 사용하는 예외 분류 + Ok/Err 변환 데코레이터.
서비스 메서드는 이 예외들을 결과 값(Err)으로 바꿔 반환하므로 라우터까지 전파되지 않음.
"""

import logging
from functools import wraps

from sqlalchemy.exc import SQLAlchemyError

from schemas.common import Err

logger = logging.getLogger(__name__)

STORAGE_ERROR_MESSAGE = "The request could not be saved right now. Please try again later."


class GradeServiceError(Exception):
    code = "ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class AuthorizationError(GradeServiceError):
    """호출자 역할이 요구 권한에 맞지 않음"""
    code = "FORBIDDEN"


class NotFoundError(GradeServiceError):
    code = "NOT_FOUND"


class BusinessRuleViolation(GradeServiceError):
    """기간 만료, 중복 신청, 기간 겹침, 이미 처리된 신청 등"""
    code = "BUSINESS_RULE"


# ==========================================================
# 서비스 메서드 → Ok/Err 변환 데코레이터
# ==========================================================
def service_result(action: str):
    """
    self.db 를 가진 서비스 메서드용.
    - GradeServiceError → Err(code, message)  (경고 로그)
    - SQLAlchemyError   → 롤백 후 Err("STORAGE_ERROR")  (스택 포함 로그)
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(self, *args, **kwargs):
            try:
                return fn(self, *args, **kwargs)
            except GradeServiceError as e:
                self.db.rollback()
                logger.warning(f"{action} 거부 [{e.code}]: {e.message}")
                return Err.of(e.code, e.message)
            except SQLAlchemyError:
                self.db.rollback()
                logger.exception(f"{action} 실패 (DB 오류)")
                return Err.of("STORAGE_ERROR", STORAGE_ERROR_MESSAGE)
        return wrapper
    return decorator
