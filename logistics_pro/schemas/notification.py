from pydantic import BaseModel, ConfigDict
from datetime import datetime


class NotificationRead(BaseModel):
    id: str
    title: str
    message: str
    notification_type: str
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
