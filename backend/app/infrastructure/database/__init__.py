from .base import Base
from .session import (
    async_session_factory,
    create_engine_for,
    create_session_factory,
    engine,
)
from .models import (
    AttachmentModel,
    CommentModel,
    DepartmentModel,
    FeatureFlagModel,
    ServiceRequestModel,
    UpvoteModel,
    UserModel,
)

__all__ = [
    "Base",
    "engine",
    "async_session_factory",
    "create_engine_for",
    "create_session_factory",
    "AttachmentModel",
    "CommentModel",
    "DepartmentModel",
    "FeatureFlagModel",
    "ServiceRequestModel",
    "UpvoteModel",
    "UserModel",
]
