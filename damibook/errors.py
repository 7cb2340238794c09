"""
Application Errors

Services raise these exceptions; routes and the exception handlers in
main.py decide how each one is shown to the user:

- ValidationError: a required field is missing or empty
- ConflictError: the identity is already registered
- NotFoundError: a referenced user or post does not exist
- AuthError: the password does not match
- LoginRequired: a protected route was requested without a valid session
- StoreError: the session store failed
"""


class DamibookError(Exception):
    """Base class for all application errors."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(DamibookError):
    pass


class ConflictError(DamibookError):
    pass


class NotFoundError(DamibookError):
    pass


class AuthError(DamibookError):
    pass


class LoginRequired(DamibookError):
    pass


class StoreError(DamibookError):
    pass
