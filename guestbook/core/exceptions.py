class GuestbookError(Exception):
    """Base exception for the guestbook application."""
    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)

# --- Not Found Errors (404) ---
class EntityNotFoundError(GuestbookError):
    """Base for Not Found errors."""
    pass

class EntryNotFoundError(EntityNotFoundError):
    def __init__(self, entry_id: int = None, message: str = None):
        if message is None:
            message = "Guestbook entry not found" if entry_id is None else f"Guestbook entry {entry_id} not found"
        super().__init__(message)

class MediaNotFoundError(EntityNotFoundError):
    def __init__(self, message: str = "Media file not found"):
        super().__init__(message)

# --- Client Errors (400/422) ---
class ValidationFailedError(GuestbookError):
    """One or more fields failed validation. `errors` maps field -> message."""
    def __init__(self, errors: dict, message: str = "Please correct the errors below."):
        self.errors = errors
        super().__init__(message)

class InvalidMediaBundleError(GuestbookError):
    def __init__(self, bundle: str, message: str = None):
        if message is None:
            message = f"Unknown media type: {bundle}"
        super().__init__(message)

# --- System Errors (500) ---
class StorageError(GuestbookError):
    def __init__(self, message: str = "An error occurred while saving your entry. Please try again later."):
        super().__init__(message)
