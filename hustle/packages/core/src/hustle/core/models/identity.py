"""调用方身份

身份由外部 Identity Provider 提供，作为显式参数传入每个服务操作。
"""

from pydantic import BaseModel, Field


class Identity(BaseModel):
    """已认证的调用方"""

    model_config = {"frozen": True}

    user_id: str = Field(min_length=1, description="用户 ID")
