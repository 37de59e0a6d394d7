class AppError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(AppError):
    status_code = 400
    message = "Validation failed"

    def __init__(self, errors: dict[str, str], message: str | None = None):
        super().__init__(message)
        self.errors = errors


class Unauthenticated(AppError):
    # одинаковое сообщение для любой причины: нет токена, токен битый, истёк, пользователь удалён
    status_code = 401
    message = "Not authorized"


class Forbidden(AppError):
    status_code = 403
    message = "Access denied"

    def __init__(self, required: tuple[str, ...]):
        super().__init__(f"Access denied. Requires role: {', '.join(required)}")
        self.required = required


class NotFound(AppError):
    status_code = 404
    message = "Not found"


class Conflict(AppError):
    status_code = 400
    message = "User already exists"


class UnsupportedMediaType(AppError):
    status_code = 415
    message = "File type not allowed. Only PDF, DOC, PPT, and images are supported."


class PayloadTooLarge(AppError):
    status_code = 413
    message = "File too large"


class InvalidToken(Exception):
    """Токен не прошёл проверку. Наружу не выходит, Auth Gate превращает его в Unauthenticated."""
