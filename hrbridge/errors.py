"""
Exception hierarchy for HR Bridge.

Only the integration compiler and the reference data loader raise to the
caller. Transformation and recovery problems are logged and absorbed where
they happen.
"""
from typing import List, Optional


class HRBridgeError(Exception):
    """Base class for all HR Bridge errors."""
    pass


class ConfigurationError(HRBridgeError):
    """
    Raised for configuration problems.

    This includes:
    - Missing or unreadable reference data files
    - Invalid JSON in reference data files
    - Missing required top-level integration fields
    """
    pass


class ValidationError(ConfigurationError):
    """
    Raised when an integration request or client schema fails validation.

    Carries every problem found so the caller can report them at once.
    """

    def __init__(self, errors: List[str], message: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(message or "Invalid configuration: " + ", ".join(self.errors))


class AIServiceError(HRBridgeError):
    """
    Raised by the generative AI client.

    This includes:
    - Network failures and timeouts
    - Non-2xx responses
    - Responses without any text candidate
    """
    pass
