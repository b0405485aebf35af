from sura.services.auth import AuthService
from sura.services.password_hasher import Argon2PasswordHasher
from sura.services.validator import Validator

__all__ = ["Argon2PasswordHasher", "AuthService", "Validator"]
