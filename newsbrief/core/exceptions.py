"""Exception hierarchy for Newsbrief."""


class NewsbriefError(Exception):
    """Base exception for all Newsbrief errors."""

    code = "INTERNAL_ERROR"


class UserNotFoundError(NewsbriefError):
    """Requesting user does not exist."""

    code = "NOT_FOUND"


class BriefingNotFoundError(NewsbriefError):
    """Briefing does not exist."""

    code = "NOT_FOUND"


class UnauthorizedError(NewsbriefError):
    """User is not allowed to access this briefing."""

    code = "FORBIDDEN"


class QuotaExceededError(NewsbriefError):
    """Daily briefing generation cap reached."""

    code = "QUOTA_EXCEEDED"


class NewsProviderError(NewsbriefError):
    """News search API returned an error or could not be reached."""

    code = "PROVIDER_ERROR"

    def __init__(self, message: str, *, provider_code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.provider_code = provider_code
        self.status_code = status_code


class LLMError(NewsbriefError):
    """LLM API call failed."""

    code = "PROVIDER_ERROR"
