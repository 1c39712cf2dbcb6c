import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from services.exceptions import GradeServiceError
from utils.responses import error_response

logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    401: "UNAUTHORIZED",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def _validation_message(exc: RequestValidationError) -> str:
    # 첫 번째 오류만 사람이 읽을 수 있게 정리 (예: "body.entries.0.value: Input should be ...")
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(p) for p in first.get("loc", ()))
    return f"{location}: {first.get('msg', 'invalid value')}"


def add_error_handlers(app: FastAPI):
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info(f"입력 검증 실패: {request.method} {request.url.path} - {exc.errors()}")
        return error_response("VALIDATION_ERROR", _validation_message(exc), status_code=422)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        response = error_response(code, str(exc.detail), status_code=exc.status_code)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(GradeServiceError)
    async def service_exception_handler(request: Request, exc: GradeServiceError):
        # 라우터에서 직접 권한 검사 등을 할 때 올라오는 예외
        logger.warning(f"요청 거부 [{exc.code}]: {request.method} {request.url.path} - {exc.message}")
        return error_response(exc.code, exc.message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"처리되지 않은 예외: {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"},
            },
        )
