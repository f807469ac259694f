"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在服务层或 UI 层做统一捕获与用户提示。
与一次对话轮次相关的错误统一继承 ChatError。
"""

from typing import Optional


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "MISSING_API_KEY"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 trace_id、backend 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class ChatError(BusinessError):
    """对话轮次失败的基类，调用方可统一捕获后展示给用户。"""


class MissingCredentialError(ChatError):
    """需要 API Key 的 Backend 没有拿到凭证。"""


class EmptyInputError(ChatError):
    """用户提交的文本去掉首尾空白后为空。"""


class ReentrantSubmissionError(ChatError):
    """上一轮请求仍在进行中，本次提交被拒绝（不排队）。"""


class NetworkError(ChatError):
    """网络层错误，例如连接失败、超时等。"""


class BackendHttpError(ChatError):
    """远端 Backend 返回非 2xx 响应时抛出。

    status/body 原样保留，便于展示和排查。
    """

    def __init__(self, status: int, body: str, backend: Optional[str] = None, code: str = "API_ERROR"):
        prefix = f"{backend}: " if backend else ""
        super().__init__(
            code=code,
            message=f"{prefix}{status} - {body}",
            http_status=status,
            backend=backend,
        )
        self.status = status
        self.body = body
        self.backend = backend


class RateLimitError(BackendHttpError):
    """Backend 限流（HTTP 429）。会话层不做自动重试。"""

    def __init__(self, body: str, backend: Optional[str] = None):
        super().__init__(status=429, body=body, backend=backend, code="RATE_LIMIT")
