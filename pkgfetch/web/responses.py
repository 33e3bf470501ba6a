"""Web 层统一响应辅助函数"""

from __future__ import annotations

from flask import Response, jsonify

from pkgfetch.core.exceptions import PkgFetchError

# 异常 code → HTTP 状态码，未列出的按 500 处理
_STATUS_BY_CODE = {
    "VALIDATION_ERROR": 400,
    "CONFIG_ERROR": 500,
    "MANIFEST_MISSING": 422,
    "MANIFEST_PARSE_ERROR": 422,
    "PLACEMENT_ERROR": 409,
    "RETRIEVAL_ERROR": 502,
}


def ok(data: dict, status: int = 200) -> tuple[Response, int] | Response:
    """成功响应"""
    if status == 200:
        return jsonify(data)
    return jsonify(data), status


def not_found(resource: str) -> tuple[Response, int]:
    """资源不存在"""
    return jsonify(error=f"{resource}不存在"), 404


def bad_request(message: str) -> tuple[Response, int]:
    """请求参数错误"""
    return jsonify(error=message), 400


def error_status(exc: PkgFetchError) -> int:
    """AcquisitionError 按其最终原因映射状态码"""
    cause = getattr(exc, "cause", None)
    if isinstance(cause, PkgFetchError):
        return _STATUS_BY_CODE.get(cause.code, 500)
    if cause is not None:
        return 502
    return _STATUS_BY_CODE.get(exc.code, 500)


def from_error(exc: PkgFetchError) -> tuple[Response, int]:
    """业务异常 → JSON 错误响应"""
    return jsonify(error=str(exc), code=exc.code), error_status(exc)
