# errors.py

from typing import Optional


class CheckAssociationsError(Exception):
    """Base class for failures raised by the association checker."""


class FetchError(CheckAssociationsError):
    """A read endpoint failed: transport error, non-2xx or bad body."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(CheckAssociationsError):
    """An NFT's expiration_date is not a base-10 Unix timestamp."""


class CallError(CheckAssociationsError):
    """The revocation call failed."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CheckAssociationsFailure(CheckAssociationsError):
    """Raised from the Lambda handler so the invocation is recorded as failed."""

    def __init__(self, body: str):
        super().__init__(body)
        self.body = body
