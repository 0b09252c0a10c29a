"""Exceptions for user backend operations.

The hierarchy is closed: backends raise only these kinds for expected
failures. Lookups never raise for "not found"; they return ``None``.
"""


class UserBackendError(Exception):
    """Base class for user backend errors."""


class InvalidUser(UserBackendError, ValueError):
    """A user record violates a model invariant (e.g. an empty name).

    Attributes:
        field (str): The offending field name.
    """

    def __init__(self, field: str, reason: str):
        super().__init__(f"Invalid user {field}: {reason}")
        self.field = field


# --- creation ---


class CreateUserError(UserBackendError):
    """Base class for errors raised by ``create_user``."""


class UsernameOrEmailAlreadyTaken(CreateUserError):
    """Conflict: the name or email is already used by another user.

    Cross-field collisions (a new name equal to an existing email, or vice
    versa) are reported the same way.
    """

    def __init__(self) -> None:
        super().__init__("Username or email already taken.")


class InvalidPassword(CreateUserError, ValueError):
    """The supplied password is not a non-empty plain-text secret.

    Also raised by ``apply_new_password`` for an empty new password.
    """

    def __init__(self, reason: str = "a non-empty plain-text password is required"):
        super().__init__(f"Invalid password: {reason}.")


# --- update ---


class UpdateUserError(UserBackendError):
    """Base class for errors raised by ``update_user``."""


class UsernameOrEmailAlreadyExists(UpdateUserError):
    """Conflict: the updated name or email belongs to another user."""

    def __init__(self) -> None:
        super().__init__("Username or email already exists.")


class UserDoesNotExist(UpdateUserError):
    """No user with the given id exists.

    Attributes:
        user_id (str): The id that was looked up.
    """

    def __init__(self, user_id: str):
        super().__init__(f"User '{user_id}' does not exist.")
        self.user_id = user_id


# --- tokens ---


class TokenError(UserBackendError):
    """Base class for password-reset and activation token errors."""


class TokenInvalid(TokenError):
    """The token is unknown, expired or already consumed.

    The three cases are deliberately indistinguishable to callers.
    """

    def __init__(self) -> None:
        super().__init__("Token is invalid.")
