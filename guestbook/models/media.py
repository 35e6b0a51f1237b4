from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.sql import func
from guestbook.core.database import Base
from guestbook.core.enums import MediaBundle

class MediaFile(Base):
    __tablename__ = "media_files"

    id = Column(Integer, primary_key=True, autoincrement=True)
    bundle = Column(Enum(MediaBundle), nullable=False)
    filename = Column(String(255), nullable=False)  # name as uploaded by the client
    content_type = Column(String(100), nullable=True)
    size = Column(Integer, nullable=False)  # bytes
    path = Column(String(500), nullable=False)  # relative to MEDIA_ROOT
    created_at = Column(DateTime(timezone=True), server_default=func.now())
