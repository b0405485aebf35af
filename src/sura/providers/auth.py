from __future__ import annotations

from sura.container import Container
from sura.protocols import PasswordHasher
from sura.providers.base import ServiceProvider
from sura.services.auth import AuthService
from sura.services.password_hasher import Argon2PasswordHasher
from sura.services.validator import Validator


class AuthServiceProvider(ServiceProvider):
    def register(self, container: Container) -> None:
        container.singleton(PasswordHasher, lambda: Argon2PasswordHasher())
        container.singleton(AuthService, AuthService)
        container.alias("auth", AuthService)


class ValidationServiceProvider(ServiceProvider):
    def register(self, container: Container) -> None:
        # Fresh per resolution; a Validator keeps its last errors
        container.bind(Validator, Validator)
        container.alias("validator", Validator)
