"""统一异常体系

所有获取流程中的异常继承 PkgFetchError。
retryable 标记决定编排器在 "classified" 重试策略下是否重跑整条流水线；
CLI 层据 code 输出友好提示，Web 层据 code 映射 HTTP 状态码。
"""

from __future__ import annotations


class PkgFetchError(Exception):
    """基础异常"""

    code: str = "UNKNOWN"
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(PkgFetchError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(PkgFetchError):
    """输入校验失败（目标目录、URL 协议、git ref 等）"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class RetrievalError(PkgFetchError):
    """git clone / registry 下载 / 解压失败"""

    code = "RETRIEVAL_ERROR"
    retryable = True


class ManifestMissingError(PkgFetchError):
    """暂存目录中没有 package.json"""

    code = "MANIFEST_MISSING"


class ManifestParseError(PkgFetchError):
    """package.json 存在但不是合法的 JSON 对象"""

    code = "MANIFEST_PARSE_ERROR"


class PlacementError(PkgFetchError):
    """暂存目录移动到最终目录失败（目标已存在、权限不足等）"""

    code = "PLACEMENT_ERROR"


class AcquisitionError(PkgFetchError):
    """重试耗尽后的最终失败，携带说明符与最后一次异常"""

    code = "ACQUISITION_FAILED"

    def __init__(self, specifier: str, attempts: int, cause: BaseException) -> None:
        super().__init__(
            f"下载 {specifier} 失败（共尝试 {attempts} 次）: {cause}"
        )
        self.specifier = specifier
        self.attempts = attempts
        self.cause = cause


def is_retryable(exc: BaseException) -> bool:
    """判断异常是否属于可重试类别（网络 / 子进程 / IO 故障）"""
    if isinstance(exc, PkgFetchError):
        return exc.retryable
    return isinstance(exc, (OSError, ConnectionError, TimeoutError))
