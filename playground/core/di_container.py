"""Dependency Injector based DI Container."""

from dependency_injector import containers, providers

from playground.core.config import DEV_JWT_SECRET, get_config
from playground.core.exceptions import ConfigurationError
from playground.core.store_factory import SESSIONS, USERS

# --- Factory Functions (defined before class to avoid NameError) ---


def _create_token_service(config):
    """Create token service, refusing the development secret outside debug mode."""
    from playground.auth.tokens import TokenService

    if config.auth.jwt_secret == DEV_JWT_SECRET and not config.debug:
        raise ConfigurationError("AUTH_JWT_SECRET must be set when debug is disabled")
    return TokenService.from_config(config.auth)


def _create_password_hasher(config):
    """Create password hasher."""
    from playground.auth.passwords import BcryptHasher

    return BcryptHasher(rounds=config.bcrypt_rounds)


def _create_user_store(config):
    """Create user store."""
    import playground.auth.user_store  # noqa: F401  (registers backends)
    from playground.core.store_factory import StoreFactory

    return StoreFactory.create(USERS, config)


def _create_session_store(config):
    """Create session store."""
    import playground.session.store  # noqa: F401  (registers backends)
    from playground.core.store_factory import StoreFactory

    return StoreFactory.create(SESSIONS, config)


def _create_auth_service(users, hasher, tokens):
    """Create account service."""
    from playground.auth.service import AuthService

    return AuthService(users=users, hasher=hasher, tokens=tokens)


def _create_session_service(config, store, users):
    """Create playground session service."""
    from playground.session.service import SessionService

    return SessionService(
        store=store,
        users=users,
        default_page_size=config.default_page_size,
        max_page_size=config.max_page_size,
    )


class DIContainer(containers.DeclarativeContainer):
    """Main dependency injection container."""

    # Configuration provider
    config = providers.Singleton(get_config)

    # Credentials
    token_service = providers.Singleton(
        _create_token_service,
        config=config,
    )

    password_hasher = providers.Singleton(
        _create_password_hasher,
        config=config.provided.auth,
    )

    # Stores
    user_store = providers.Singleton(
        _create_user_store,
        config=config.provided.store,
    )

    session_store = providers.Singleton(
        _create_session_store,
        config=config.provided.store,
    )

    # Services
    auth_service = providers.Singleton(
        _create_auth_service,
        users=user_store,
        hasher=password_hasher,
        tokens=token_service,
    )

    session_service = providers.Singleton(
        _create_session_service,
        config=config,
        store=session_store,
        users=user_store,
    )


# Global container instance
container = DIContainer()
