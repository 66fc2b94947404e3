from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType
from typing import Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mongo_attendance_repository import MongoAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .auth.gate import AccessGate
from .auth.guards import RouteGuard
from .auth.tokens import TokenCodec
from .clients.mongo_client_repository import MongoClientRepository
from .clients.repository import ClientRepository
from .clients.service import ClientService
from .common.references import ReferencePopulator
from .core.constants import DEFAULT_TOKEN_DAYS
from .core.enums import RelatedKind
from .database.connection import DatabaseConnection, MongoConfig, MongoTransactionRunner
from .leads.conversion import LeadConversionService, TransactionRunner
from .leads.mongo_lead_repository import MongoLeadRepository
from .leads.repository import LeadRepository
from .leads.service import LeadService
from .projects.mongo_project_repository import MongoProjectRepository
from .projects.repository import ProjectRepository
from .projects.service import ProjectService
from .sales.mongo_sale_repository import MongoSaleRepository
from .sales.repository import SaleRepository
from .sales.service import SaleService
from .storage.avatar import AvatarStorage, DisabledAvatarStorage, S3AvatarStorage
from .tasks.mongo_task_repository import MongoTaskRepository
from .tasks.related import RelatedEntityRegistry
from .tasks.repository import TaskRepository
from .tasks.service import TaskService
from .users.mongo_user_repository import MongoUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    clients_repo: ClientRepository
    projects_repo: ProjectRepository
    tasks_repo: TaskRepository
    sales_repo: SaleRepository
    leads_repo: LeadRepository
    attendance_repo: AttendanceRepository

    tokens: TokenCodec
    guard: RouteGuard
    references: ReferencePopulator

    auth_service: AuthService
    user_service: UserService
    client_service: ClientService
    project_service: ProjectService
    task_service: TaskService
    sale_service: SaleService
    lead_service: LeadService
    conversion_service: LeadConversionService
    attendance_service: AttendanceService

    token_days: int = DEFAULT_TOKEN_DAYS
    cookie_secure: bool = False


def assemble(
    *,
    users_repo: UserRepository,
    clients_repo: ClientRepository,
    projects_repo: ProjectRepository,
    tasks_repo: TaskRepository,
    sales_repo: SaleRepository,
    leads_repo: LeadRepository,
    attendance_repo: AttendanceRepository,
    transactions: TransactionRunner,
    avatars: AvatarStorage,
    secret_key: str,
    token_days: int = DEFAULT_TOKEN_DAYS,
    cookie_secure: bool = False,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services over already-built repositories."""

    tokens = TokenCodec(secret_key, max_age_days=token_days)
    related = RelatedEntityRegistry(
        {
            RelatedKind.PROJECT: projects_repo.get_by_id,
            RelatedKind.CLIENT: clients_repo.get_by_id,
            RelatedKind.LEAD: leads_repo.get_by_id,
            RelatedKind.SALE: sales_repo.get_by_id,
        }
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        clients_repo=clients_repo,
        projects_repo=projects_repo,
        tasks_repo=tasks_repo,
        sales_repo=sales_repo,
        leads_repo=leads_repo,
        attendance_repo=attendance_repo,
        tokens=tokens,
        guard=RouteGuard(AccessGate(users_repo, tokens)),
        references=ReferencePopulator(users_repo, clients_repo, projects_repo),
        auth_service=AuthService(users_repo, tokens),
        user_service=UserService(users_repo, avatars),
        client_service=ClientService(clients_repo),
        project_service=ProjectService(projects_repo, clients_repo),
        task_service=TaskService(tasks_repo, users_repo, projects_repo, related),
        sale_service=SaleService(sales_repo, users_repo, projects_repo, clients_repo),
        lead_service=LeadService(leads_repo, users_repo),
        conversion_service=LeadConversionService(leads_repo, clients_repo, transactions),
        attendance_service=AttendanceService(attendance_repo, strategy_factory=AttendanceStrategyFactory()),
        token_days=token_days,
        cookie_secure=cookie_secure,
    )


def build_avatar_storage(config: Optional[dict]) -> AvatarStorage:
    config = config or {}
    if not config.get("bucket"):
        return DisabledAvatarStorage()
    return S3AvatarStorage(
        bucket=str(config["bucket"]),
        region=str(config.get("region") or "us-east-1"),
        endpoint_url=config.get("endpoint_url"),
        public_base_url=config.get("public_base_url"),
    )


def build_container(settings: ModuleType) -> Container:
    mongo = getattr(settings, "MONGO_CONFIG")
    conn = DatabaseConnection.get_instance(
        MongoConfig(
            uri=str(mongo["uri"]),
            database=str(mongo["database"]),
            server_selection_timeout_ms=int(mongo.get("server_selection_timeout_ms", 5000)),
        )
    )

    return assemble(
        users_repo=MongoUserRepository(conn),
        clients_repo=MongoClientRepository(conn),
        projects_repo=MongoProjectRepository(conn),
        tasks_repo=MongoTaskRepository(conn),
        sales_repo=MongoSaleRepository(conn),
        leads_repo=MongoLeadRepository(conn),
        attendance_repo=MongoAttendanceRepository(conn),
        transactions=MongoTransactionRunner(conn),
        avatars=build_avatar_storage(getattr(settings, "AVATAR_STORAGE", None)),
        secret_key=str(getattr(settings, "SECRET_KEY")),
        token_days=int(getattr(settings, "TOKEN_EXPIRES_DAYS", DEFAULT_TOKEN_DAYS)),
        cookie_secure=bool(getattr(settings, "COOKIE_SECURE", False)),
        conn=conn,
    )
