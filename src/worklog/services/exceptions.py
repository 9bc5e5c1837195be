class ValidationError(Exception):
    """Raised when service input is missing or malformed."""
    pass
