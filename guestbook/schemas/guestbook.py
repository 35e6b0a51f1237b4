from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime

# Input fields are left unconstrained on purpose: the submission pipeline
# runs every rule and reports all failures at once.
class GuestbookCreate(BaseModel):
    name: Optional[str] = Field(None, description="Author name (2-100 characters)")
    email: Optional[str] = Field(None, description="Contact email")
    phone: Optional[str] = Field(None, description="10 digits, starting with 7, 8 or 9")
    message: Optional[str] = Field(None, description="Message or feedback")
    review: Optional[str] = Field(None, description="Review text")
    avatar_media_id: Optional[int] = Field(None, description="Uploaded avatar (see /guestbook/media/avatar)")
    review_image_media_id: Optional[int] = Field(None, description="Uploaded review image")

class GuestbookUpdate(GuestbookCreate):
    """Partial update: only the fields present in the request body are applied."""
    pass

class GuestbookEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: str
    message: str
    review: str
    avatar_media_id: Optional[int] = None
    review_image_media_id: Optional[int] = None
    created_at: datetime

class GuestbookPageResponse(BaseModel):
    items: List[GuestbookEntryResponse]
    page: int  # page actually served (after clamping)
    requested_page: int
    page_size: int
    last_page: int
    total: int

    @property
    def clamped(self) -> bool:
        return self.page != self.requested_page

class GuestbookCountResponse(BaseModel):
    count: int

class GuestbookDeleteResponse(BaseModel):
    deleted: bool
    message: str

class FieldCheckResponse(BaseModel):
    valid: bool
    message: str

class FieldValidationRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    message: Optional[str] = None
    review: Optional[str] = None

FieldValidationResponse = Dict[str, FieldCheckResponse]
