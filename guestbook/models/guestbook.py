from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from guestbook.core.database import Base

class GuestbookEntry(Base):
    __tablename__ = "guestbook_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)

    message = Column(Text, nullable=False)
    review = Column(Text, nullable=False)

    avatar_media_id = Column(Integer, ForeignKey("media_files.id", ondelete="SET NULL"), nullable=True)
    review_image_media_id = Column(Integer, ForeignKey("media_files.id", ondelete="SET NULL"), nullable=True)

    # Listing sort key (newest first)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)

    avatar = relationship("MediaFile", foreign_keys=[avatar_media_id])
    review_image = relationship("MediaFile", foreign_keys=[review_image_media_id])
