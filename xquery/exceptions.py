"""
Custom exceptions raised outside the upstream client
"""


class ConfigurationError(Exception):
    """Process configuration is missing or malformed"""

    def __init__(self, detail: str = "Invalid configuration"):
        self.detail = detail
        super().__init__(detail)


class InvalidInputError(ValueError):
    """Tool input could not be normalized"""

    def __init__(self, detail: str = "Invalid input"):
        self.detail = detail
        super().__init__(detail)


class NotFoundError(LookupError):
    """Requested tweet or thread does not exist or is not accessible"""

    def __init__(self, detail: str = "Resource not found"):
        self.detail = detail
        super().__init__(detail)
