"""Request and response schemas."""

from usersvc.schemas.user import (  # noqa: F401
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    UserListResponse,
    UserRead,
)
