from enum import Enum

class SubmissionStatus(str, Enum):
    OK = "OK"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    NOT_FOUND = "NOT_FOUND"          # update target missing
    STORAGE_ERROR = "STORAGE_ERROR"  # backend failure, nothing written

class MediaBundle(str, Enum):
    AVATAR = "avatar"
    REVIEW_IMAGE = "review_image"
