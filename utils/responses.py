from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from schemas.common import Err

# ✅ Err 코드 → HTTP 상태 코드
ERROR_STATUS = {
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "BUSINESS_RULE": 400,
    "DUPLICATE_REQUEST": 409,
    "ALREADY_RESOLVED": 409,
    "VALIDATION_ERROR": 422,
    "STORAGE_ERROR": 503,
}


def error_response(code: str, message: str, status_code: int | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code or ERROR_STATUS.get(code, 400),
        content={"success": False, "error": {"code": code, "message": message}},
    )


def to_response(result, status_code: int = 200) -> JSONResponse:
    """서비스 결과(Ok/Err) → 공통 응답 포맷 {success, data|error, message}"""
    if isinstance(result, Err):
        return error_response(result.code, result.message)

    content = {"success": True, "data": jsonable_encoder(result.data)}
    if result.message:
        content["message"] = result.message
    return JSONResponse(status_code=status_code, content=content)
