from email_validator import EmailNotValidError, validate_email

from .entities import Role
from .errors import ValidationError

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 8
TITLE_MAX_LENGTH = 255


def validate_registration(username: str, email: str, password: str) -> tuple[str, str]:
    """Проверяет поля регистрации и возвращает нормализованные (username, email).

    Все ошибки собираются сразу, чтобы клиент увидел их по полям.
    """
    errors: dict[str, str] = {}
    username = (username or "").strip()
    email = (email or "").strip().lower()

    if len(username) < USERNAME_MIN_LENGTH:
        errors["username"] = f"Username must be at least {USERNAME_MIN_LENGTH} characters long."
    elif len(username) > USERNAME_MAX_LENGTH:
        errors["username"] = f"Username must be at most {USERNAME_MAX_LENGTH} characters long."

    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        errors["email"] = "A valid email is required."

    if len(password or "") < PASSWORD_MIN_LENGTH:
        errors["password"] = f"Password must be at least {PASSWORD_MIN_LENGTH} characters long."

    if errors:
        raise ValidationError(errors)
    return username, email


def validate_role(role: str) -> Role:
    try:
        return Role(role)
    except ValueError:
        raise ValidationError({"role": f"Role must be one of: {', '.join(r.value for r in Role)}."})


def validate_announcement(title: str, content: str) -> tuple[str, str]:
    title = (title or "").strip()
    content = (content or "").strip()
    errors: dict[str, str] = {}
    if not title:
        errors["title"] = "Title is required."
    if not content:
        errors["content"] = "Content is required."
    if errors:
        raise ValidationError(errors, "Title and content are required.")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError({"title": f"Title must be at most {TITLE_MAX_LENGTH} characters long."})
    return title, content
