"""Session sharing pipeline: verify, validate, resolve."""

from loguru import logger

from src.session_sharing.core.errors import ConfigurationError
from src.session_sharing.core.models.sharing import ResolvedIdentity, SharingSettings
from src.session_sharing.core.services.identity.identity_resolver import IdentityResolver
from src.session_sharing.core.services.jwt.jwt_verify import TokenVerifier
from src.session_sharing.core.services.payload import extract_identity, validate_payload
from src.session_sharing.core.services.user.account_service import AccountService
from src.session_sharing.core.storage.kv_storage import KeyValueStorage
from src.session_sharing.runtime.config.config_data import ConfigData


class SessionSharingService:
    """Owns the current settings snapshot and runs the login pipeline.

    Request handlers only ever read ``settings``; ``reload_settings`` swaps the
    whole snapshot (and the verifier and resolver built from it) at once.
    """

    def __init__(self, storage: KeyValueStorage, accounts: AccountService):
        self._storage = storage
        self._accounts = accounts
        self._state: tuple[SharingSettings, TokenVerifier, IdentityResolver] | None = None

    @property
    def ready(self) -> bool:
        return self._state is not None

    @property
    def settings(self) -> SharingSettings:
        if self._state is None:
            raise ConfigurationError("Session sharing is not configured")
        return self._state[0]

    def reload_settings(self, config: ConfigData) -> SharingSettings:
        """Build a new settings snapshot from ``config`` and make it current.

        Raises:
            ConfigurationError: when no secret is configured or the asset
                blacklist does not compile. The pipeline is marked not ready
                until a valid configuration is loaded.
        """
        cfg = config.session_sharing
        if not cfg.secret:
            self._state = None
            logger.error("JWT Secret not found, session sharing disabled.")
            raise ConfigurationError("JWT secret not configured")

        try:
            settings = SharingSettings.from_config(cfg, config.app)
        except ConfigurationError as e:
            self._state = None
            logger.error("{}, session sharing disabled.", e.message)
            raise
        verifier = TokenVerifier(settings.allowed_algorithms, settings.clock_skew)
        resolver = IdentityResolver(self._storage, self._accounts, settings.mapping_key)
        self._state = (settings, verifier, resolver)
        logger.info("Session sharing settings OK")
        return settings

    def identify(self, token: str) -> ResolvedIdentity:
        """Verify ``token`` and extract the identity it asserts, without any writes."""
        settings, verifier, _ = self._require_state()
        return self._identify(settings, verifier, token)

    async def process(self, token: str) -> int:
        """Run the full pipeline and return the local account id for ``token``."""
        settings, verifier, resolver = self._require_state()
        return await resolver.resolve(self._identify(settings, verifier, token))

    @staticmethod
    def _identify(settings: SharingSettings, verifier: TokenVerifier, token: str) -> ResolvedIdentity:
        claims = verifier.verify(token, settings.secret)
        scope = validate_payload(claims, settings.payload)
        logger.debug("Payload verified")
        return extract_identity(scope, settings.payload)

    def _require_state(self) -> tuple[SharingSettings, TokenVerifier, IdentityResolver]:
        state = self._state
        if state is None:
            raise ConfigurationError("Session sharing is not configured")
        return state
