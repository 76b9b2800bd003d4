"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store 实例与调用方身份

Store 实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Request
from hustle.core.models import Identity
from hustle.core.store import StoreGroup

from .identity import HeaderIdentityProvider


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_identity_provider(request: Request) -> HeaderIdentityProvider:
    """从 app.state 获取 Identity Provider，未配置时按环境变量创建"""
    provider = getattr(request.app.state, "identity_provider", None)
    if provider is None:
        provider = HeaderIdentityProvider()
        request.app.state.identity_provider = provider
    return provider


def get_current_identity(request: Request) -> Identity | None:
    """当前调用方身份，未认证时为 None"""
    return get_identity_provider(request).current_identity(request)
