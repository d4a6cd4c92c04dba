"""Notification schemas"""

from typing import Literal, Optional

from pydantic import BaseModel

NotificationType = Literal["license_created", "license_updated", "license_check", "test_notification"]


class NotificationRequest(BaseModel):
    type: NotificationType
    licenseId: Optional[str] = None
    # test_notification only: target user's Firebase UID (all users when omitted)
    userId: Optional[str] = None
    message: Optional[str] = None
