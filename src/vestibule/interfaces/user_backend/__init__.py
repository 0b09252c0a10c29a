"""VESTIBULE User Backend Interface Package"""

from .errors import (
    CreateUserError,
    InvalidPassword,
    InvalidUser,
    TokenError,
    TokenInvalid,
    UpdateUserError,
    UserBackendError,
    UserDoesNotExist,
    UsernameOrEmailAlreadyExists,
    UsernameOrEmailAlreadyTaken,
)
from .models import (
    HIDDEN,
    ActivationToken,
    DataclassCodec,
    HashedPassword,
    HiddenPassword,
    PassthroughCodec,
    Password,
    PasswordResetToken,
    PayloadCodec,
    PlainTextPassword,
    SessionId,
    User,
    UserId,
)
from .user_backend import UserBackend

__all__ = [
    "HIDDEN",
    "ActivationToken",
    "CreateUserError",
    "DataclassCodec",
    "HashedPassword",
    "HiddenPassword",
    "InvalidPassword",
    "InvalidUser",
    "PassthroughCodec",
    "Password",
    "PasswordResetToken",
    "PayloadCodec",
    "PlainTextPassword",
    "SessionId",
    "TokenError",
    "TokenInvalid",
    "UpdateUserError",
    "User",
    "UserBackend",
    "UserBackendError",
    "UserDoesNotExist",
    "UserId",
    "UsernameOrEmailAlreadyExists",
    "UsernameOrEmailAlreadyTaken",
]
