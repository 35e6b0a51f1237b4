from pydantic import BaseModel, ConfigDict
from datetime import datetime
from guestbook.core.enums import MediaBundle

class MediaResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    bundle: MediaBundle
    filename: str
    content_type: str | None = None
    size: int
    created_at: datetime | None = None
