from __future__ import annotations

from pymongo.errors import PyMongoError

from support_portal.core.config import Settings
from support_portal.infrastructure.key_value_storage import RedisKeyValueStorage, ScopedStorage
from support_portal.infrastructure.logging import get_logger
from support_portal.infrastructure.mongo_indexes import ensure_mongo_indexes
from support_portal.infrastructure.persistence_clients import MongoClientManager, RedisClientManager
from support_portal.repositories.blob_repository import BlobRepository
from support_portal.repositories.order_repository import OrderNumberRepository, OrderRepository
from support_portal.repositories.profile_repository import ProfileRepository
from support_portal.repositories.question_repository import QuestionRepository
from support_portal.repositories.session_repository import SessionRepository
from support_portal.repositories.support_repository import SupportRepository
from support_portal.services.attachment_uploader import AttachmentUploader
from support_portal.services.auth_backend import AnonymousAuthBackend
from support_portal.services.identity_cache import PersistentMapping, SessionCache
from support_portal.services.identity_resolver import IdentityContext, IdentityResolver
from support_portal.services.order_submission import OrderSubmissionService
from support_portal.services.otp_service import OtpService
from support_portal.services.profile_service import ProfileService
from support_portal.services.question_service import QuestionService
from support_portal.services.support_workflow import SupportWorkflow, WorkflowRegistry
from support_portal.services.ticket_submission import TicketSubmissionService

logger = get_logger(__name__)


class Container:
    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings.from_env()
        self.mongo_manager = MongoClientManager(
            uri=self.settings.mongodb_uri,
            enabled=self.settings.enable_external_services,
        )
        self.redis_manager = RedisClientManager(
            url=self.settings.redis_url,
            enabled=self.settings.enable_external_services,
        )

        self.tab_storage = RedisKeyValueStorage(
            redis_manager=self.redis_manager,
            ttl_seconds=self.settings.tab_cache_ttl_seconds,
        )
        self.device_storage = RedisKeyValueStorage(redis_manager=self.redis_manager)
        self.session_storage = RedisKeyValueStorage(
            redis_manager=self.redis_manager,
            ttl_seconds=self.settings.anonymous_session_ttl_seconds,
        )

        self.session_repository = SessionRepository(storage=self.session_storage)
        self.profile_repository = ProfileRepository(mongo_manager=self.mongo_manager)
        self.support_repository = SupportRepository(mongo_manager=self.mongo_manager)
        self.order_repository = OrderRepository(mongo_manager=self.mongo_manager)
        self.order_number_repository = OrderNumberRepository(mongo_manager=self.mongo_manager)
        self.question_repository = QuestionRepository(mongo_manager=self.mongo_manager)
        self.blob_repository = BlobRepository(
            mongo_manager=self.mongo_manager,
            bucket_name=self.settings.attachment_bucket,
        )

        self.attachment_uploader = AttachmentUploader(
            blob_store=self.blob_repository,
            max_bytes=self.settings.attachment_max_bytes,
        )
        self.ticket_submission_service = TicketSubmissionService(
            support_repository=self.support_repository,
            attachment_uploader=self.attachment_uploader,
        )
        self.order_submission_service = OrderSubmissionService(
            order_repository=self.order_repository,
            order_number_generator=self.order_number_repository,
        )
        self.profile_service = ProfileService(profile_repository=self.profile_repository)
        self.question_service = QuestionService(question_repository=self.question_repository)
        self.otp_service = OtpService(settings=self.settings)
        self.workflow_registry = WorkflowRegistry(limit=self.settings.workflow_registry_limit)

    def identity_context(self, *, tab_id: str, device_id: str) -> IdentityContext:
        device = ScopedStorage(self.device_storage, f"device:{device_id}")
        return IdentityContext(
            session_cache=SessionCache(ScopedStorage(self.tab_storage, f"tab:{tab_id}")),
            persistent_mapping=PersistentMapping(device),
            auth_backend=AnonymousAuthBackend(
                settings=self.settings,
                session_repository=self.session_repository,
                device_storage=device,
            ),
        )

    def identity_resolver(self, *, tab_id: str, device_id: str) -> IdentityResolver:
        return IdentityResolver(
            context=self.identity_context(tab_id=tab_id, device_id=device_id),
            profile_store=self.profile_repository,
        )

    def new_workflow(self, *, resolver: IdentityResolver, tab_id: str) -> SupportWorkflow:
        return self.workflow_registry.create(
            tab_id=tab_id,
            factory=lambda: SupportWorkflow(
                resolver=resolver,
                ticket_submission=self.ticket_submission_service,
            ),
        )

    async def start(self) -> None:
        self.mongo_manager.connect()
        self.redis_manager.connect()
        if self.mongo_manager.client is not None:
            try:
                ensure_mongo_indexes(client=self.mongo_manager.client)
            except PyMongoError as exc:
                logger.warning("mongo.index_setup_failed", error=str(exc))

    async def stop(self) -> None:
        self.mongo_manager.disconnect()
        self.redis_manager.disconnect()

container = Container()

settings = container.settings
mongo_manager = container.mongo_manager
redis_manager = container.redis_manager
ticket_submission_service = container.ticket_submission_service
order_submission_service = container.order_submission_service
profile_service = container.profile_service
question_service = container.question_service
otp_service = container.otp_service
workflow_registry = container.workflow_registry
