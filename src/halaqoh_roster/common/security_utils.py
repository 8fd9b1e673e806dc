'''
Credential helpers shared by the identity store, the test factories and the
seeding script: password hashing plus the identity provider's input policy.
'''
from email_validator import validate_email, EmailNotValidError
from passlib.context import CryptContext

from .config import settings
from .exceptions import IdentityInvalid

# --- Password Hashing ---
class HashedPassword:
    pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

    @classmethod
    def verify(cls, plain_password: str, hashed_password: str) -> bool:
        return cls.pwd_context.verify(plain_password, hashed_password)

    @classmethod
    def get_hash(cls, password: str) -> str:
        return cls.pwd_context.hash(password)


# --- Identity policy ---
def normalize_email(email: str) -> str:
    """
    Syntax check only (no DNS lookup). Returned lowercased so that lookups
    by email are case-insensitive.
    """
    try:
        return validate_email(email, check_deliverability=False).normalized.lower()
    except EmailNotValidError as e:
        raise IdentityInvalid(f"Invalid email address: {e}") from e


def check_password_policy(password: str):
    if len(password or "") < settings.MIN_PASSWORD_LENGTH:
        raise IdentityInvalid(
            f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters."
        )
