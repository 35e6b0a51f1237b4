# guestbook/models/__init__.py
from .media import MediaFile
from .guestbook import GuestbookEntry
from guestbook.core.database import Base


# Exposed so create_all sees every table
__all__ = [
    "Base",
    "MediaFile",
    "GuestbookEntry",
]
