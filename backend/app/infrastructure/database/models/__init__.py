from .service_request_models import (
    AttachmentModel,
    CommentModel,
    DepartmentModel,
    FeatureFlagModel,
    ServiceRequestModel,
    UpvoteModel,
    UserModel,
)

__all__ = [
    "AttachmentModel",
    "CommentModel",
    "DepartmentModel",
    "FeatureFlagModel",
    "ServiceRequestModel",
    "UpvoteModel",
    "UserModel",
]
