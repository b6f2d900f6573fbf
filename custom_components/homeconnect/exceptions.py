"""Home Connect API 客户端使用的异常类型."""

from typing import Any


class HomeConnectError(Exception):
    """Base exception for Home Connect API errors."""


class ConfigurationError(HomeConnectError):
    """配置不完整，例如缺少 refresh token。"""


class CommunicationError(HomeConnectError):
    """与 API 通信失败，或返回了意外的 HTTP 状态码。"""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthorizationError(HomeConnectError):
    """Token 被拒绝，需要重新认证。"""


class InvalidTokenError(AuthorizationError):
    """Access token rejected by a REST call."""


class DeviceAuthorizationPending(HomeConnectError):
    """Device flow 尚未被用户确认。"""
