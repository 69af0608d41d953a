from __future__ import annotations


class UploadError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class UnsupportedFileType(UploadError):
    def __init__(self, message: str = "File type not allowed"):
        super().__init__(message, status_code=400)


class InvalidName(UploadError):
    def __init__(self, message: str = "Invalid filename"):
        super().__init__(message, status_code=400)


class PayloadTooLarge(UploadError):
    def __init__(self, message: str = "File exceeds the maximum upload size"):
        super().__init__(message, status_code=413)


class NotFound(UploadError):
    def __init__(self, message: str = "File not found"):
        super().__init__(message, status_code=404)


class StorageFailure(UploadError):
    def __init__(self, message: str = "Failed to save file"):
        super().__init__(message, status_code=500)
