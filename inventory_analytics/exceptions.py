"""
Analytics Error Taxonomy

Only fetch-level failures abort an analysis pass. Malformed user input is
replaced by defaults, and an empty result is a normal outcome rather than
an error (see ``AnalyticsResult.is_empty``).
"""

from typing import Optional


class AnalyticsError(Exception):
    """Base class for analytics errors"""

    user_message: str = "Something went wrong while preparing the report."
    retryable: bool = False

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        if user_message is not None:
            self.user_message = user_message


class FetchError(AnalyticsError):
    """Underlying data retrieval failed; the whole pass is aborted"""

    user_message = "We couldn't load the data for this report. Please reset the filters or try again."
    retryable = True

    def __init__(self, message: str, source: Optional[str] = None, user_message: Optional[str] = None):
        super().__init__(message, user_message=user_message)
        self.source = source


class MalformedInputError(AnalyticsError, ValueError):
    """Invalid date or filter parameter"""

    user_message = "Some filters were invalid and have been reset to their defaults."

    def __init__(self, message: str, parameter: Optional[str] = None, value: Optional[str] = None):
        super().__init__(message)
        self.parameter = parameter
        self.value = value
