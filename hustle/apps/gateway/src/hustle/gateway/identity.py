"""Identity Provider -- 从受信任的请求头读取调用方身份

认证由上游网关 / 会话服务完成，这里只消费其结果：
请求头缺失或为空时返回 None，由业务服务抛出 UnauthenticatedError。
"""

import os

from hustle.core.models import Identity
from starlette.requests import Request

DEFAULT_IDENTITY_HEADER = "X-User-Id"


def get_identity_header() -> str:
    """身份请求头名称，可通过 HUSTLE_IDENTITY_HEADER 覆盖"""
    return os.environ.get("HUSTLE_IDENTITY_HEADER", DEFAULT_IDENTITY_HEADER)


class HeaderIdentityProvider:
    """基于请求头的 Identity Provider"""

    def __init__(self, header_name: str | None = None) -> None:
        self.header_name = header_name or get_identity_header()

    def current_identity(self, request: Request) -> Identity | None:
        user_id = request.headers.get(self.header_name, "").strip()
        if not user_id:
            return None
        return Identity(user_id=user_id)
