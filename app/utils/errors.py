class ReportValidationError(Exception):
    """Submitted report rejected before anything is persisted."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingFieldsError(ReportValidationError):
    def __init__(self, message: str = "Missing required fields"):
        super().__init__(message)


class InvalidPhotoError(ReportValidationError):
    def __init__(self, message: str = "Invalid photo"):
        super().__init__(message)


class ImagePreparationError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ResourceLimitError(ImagePreparationError):
    status_code = 413


class SizeLimitExceeded(ResourceLimitError):
    def __init__(self, max_size_kb: float):
        super().__init__(
            f"Could not compress image below {max_size_kb:g}KB. "
            "Try a smaller image or lower quality."
        )
        self.max_size_kb = max_size_kb


class ImageDecodeError(ImagePreparationError):
    def __init__(self, message: str = "Failed to load image"):
        super().__init__(message)


class ImageReadError(ImagePreparationError):
    def __init__(self, message: str = "Failed to read file"):
        super().__init__(message)
