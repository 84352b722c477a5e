"""Service wiring: builds the account core from settings"""

from dataclasses import dataclass
from typing import Optional

from .auth.gateway import AuthGateway
from .services.admin_ops import AdminOperations
from .services.assistant import StudyAssistant
from .services.completion import CompletionService, OpenAICompletionService
from .services.quota_tracker import QuotaTracker
from .services.record_store import RecordStore
from .services.session_manager import DEFAULT_CLIENT_ID, SessionManager
from .services.subscription import SubscriptionWorkflow
from .services.subscription_plans import PlanCatalogue
from .utils.clock import Clock
from .utils.config import Settings, load_settings
from .utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


@dataclass
class Services:
    """Process-wide services; session-bound ones are created per client"""

    settings: Settings
    clock: Clock
    store: RecordStore
    quota: QuotaTracker
    subscriptions: SubscriptionWorkflow
    admin: AdminOperations
    completion: CompletionService

    def sessions(self, client_id: str = DEFAULT_CLIENT_ID) -> SessionManager:
        return SessionManager(self.store, client_id=client_id, clock=self.clock)

    def auth(self, sessions: SessionManager) -> AuthGateway:
        return AuthGateway(
            self.store,
            sessions,
            clock=self.clock,
            bcrypt_rounds=self.settings.auth.bcrypt_rounds,
        )

    def assistant(self, sessions: SessionManager) -> StudyAssistant:
        return StudyAssistant(sessions, self.quota, self.completion)


def build_services(
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
    completion: Optional[CompletionService] = None,
    store: Optional[RecordStore] = None,
    configure_logging: bool = True,
) -> Services:
    """
    Build the core services and provision the admin account.

    Args:
        settings: Loaded settings (load_settings() when omitted)
        clock: Time source (deployment timezone clock when omitted)
        completion: AI collaborator (OpenAI when omitted)
        store: Record store (JSON files under storage.data_dir when omitted)
        configure_logging: Apply the logging section of the settings
    """
    settings = settings or load_settings()
    if configure_logging:
        setup_logging(
            level=settings.logging.level,
            fmt=settings.logging.format,
            file_path=settings.logging.file_path,
            max_bytes=settings.logging.max_bytes,
            backup_count=settings.logging.backup_count,
        )

    clock = clock or Clock(settings.app.timezone)
    store = store or RecordStore(settings.storage.data_dir)
    plans = PlanCatalogue(settings.plans)
    subscriptions = SubscriptionWorkflow(store, clock=clock, plans=plans)
    completion = completion or OpenAICompletionService(
        api_key=settings.ai.api_key,
        model=settings.ai.model,
        timeout=settings.ai.timeout,
        max_retries=settings.ai.max_retries,
    )

    services = Services(
        settings=settings,
        clock=clock,
        store=store,
        quota=QuotaTracker(store, clock=clock, daily_limit=settings.quota.daily_limit),
        subscriptions=subscriptions,
        admin=AdminOperations(store, subscriptions, clock=clock),
        completion=completion,
    )

    services.auth(services.sessions()).ensure_seed_admin(
        settings.auth.admin_email,
        settings.auth.admin_secret,
        name=settings.auth.admin_name,
    )
    logger.info(
        "SERVICES_READY",
        data_dir=settings.storage.data_dir,
        timezone=settings.app.timezone,
        daily_limit=settings.quota.daily_limit,
    )
    return services
