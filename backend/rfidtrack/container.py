# Overview: Per-request wiring of repositories, collaborators and workflow services.

"""
Dependency container

One ServiceContainer is built per unit of work (per HTTP request, per CLI
command, per test). Everything is constructed lazily, so a request only pays
for the services it touches.

    container = ServiceContainer(db.session, app.config)
    container.box_service.create_box(actor_uuid, "001")

Swap `clock` (and `rng`) to pin time-derived identifiers in tests.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from functools import cached_property
from typing import Any, Callable, Mapping, Optional

from sqlalchemy.orm import Session

from .derivation import get_rfid_strategy
from .repositories import (
    SqlBoxRepository,
    SqlProductRfidRepository,
    SqlShipmentRepository,
    SqlSystemLogRepository,
    SqlUserRepository,
)
from .services.audit_service import AuditService
from .services.auth_service import AuthService, PasswordHasher
from .services.box_generation_service import BoxGenerationService
from .services.box_service import BoxService
from .services.log_service import LogService
from .services.rfid_generation_service import RfidGenerationService
from .services.rfid_service import RfidService
from .services.shipment_generation_service import ShipmentGenerationService
from .services.shipment_service import ShipmentService
from .services.token_service import TokenIssuer
from .services.user_service import UserService


def system_clock() -> datetime:
    return datetime.now(timezone.utc)


class ServiceContainer:
    def __init__(
        self,
        session: Session,
        config: Mapping[str, Any],
        clock: Callable[[], datetime] = system_clock,
        rng: Optional[random.Random] = None,
        ip_address: Optional[str] = None,
    ):
        self.session = session
        self.config = config
        self.clock = clock
        self.rng = rng
        self.ip_address = ip_address

    # Repositories

    @cached_property
    def user_repository(self) -> SqlUserRepository:
        return SqlUserRepository(self.session)

    @cached_property
    def product_rfid_repository(self) -> SqlProductRfidRepository:
        return SqlProductRfidRepository(self.session)

    @cached_property
    def box_repository(self) -> SqlBoxRepository:
        return SqlBoxRepository(self.session)

    @cached_property
    def shipment_repository(self) -> SqlShipmentRepository:
        return SqlShipmentRepository(self.session)

    @cached_property
    def system_log_repository(self) -> SqlSystemLogRepository:
        return SqlSystemLogRepository(self.session)

    # Collaborators

    @cached_property
    def audit_service(self) -> AuditService:
        return AuditService(self.system_log_repository, ip_address=self.ip_address)

    @cached_property
    def password_hasher(self) -> PasswordHasher:
        return PasswordHasher(rounds=int(self.config.get("BCRYPT_ROUNDS", 12)))

    @cached_property
    def token_issuer(self) -> TokenIssuer:
        return TokenIssuer(
            self.session,
            access_ttl=timedelta(minutes=int(self.config.get("ACCESS_TOKEN_TTL_MINUTES", 60))),
            refresh_ttl=timedelta(days=int(self.config.get("REFRESH_TOKEN_TTL_DAYS", 7))),
        )

    @cached_property
    def rfid_generation_service(self) -> RfidGenerationService:
        strategy = get_rfid_strategy(self.config.get("RFID_DERIVATION", "concat"))
        return RfidGenerationService(self.product_rfid_repository, strategy)

    @cached_property
    def box_generation_service(self) -> BoxGenerationService:
        return BoxGenerationService(self.box_repository, self.clock)

    @cached_property
    def shipment_generation_service(self) -> ShipmentGenerationService:
        return ShipmentGenerationService(
            self.shipment_repository,
            self.clock,
            rng=self.rng,
            max_attempts=int(self.config.get("SHIPMENT_NUMBER_MAX_ATTEMPTS", 100)),
        )

    # Workflows

    @cached_property
    def auth_service(self) -> AuthService:
        return AuthService(
            self.session, self.user_repository, self.audit_service, self.password_hasher, self.token_issuer
        )

    @cached_property
    def user_service(self) -> UserService:
        return UserService(
            self.session, self.user_repository, self.audit_service, self.password_hasher, self.token_issuer
        )

    @cached_property
    def rfid_service(self) -> RfidService:
        return RfidService(
            self.session,
            self.user_repository,
            self.audit_service,
            self.product_rfid_repository,
            self.rfid_generation_service,
        )

    @cached_property
    def box_service(self) -> BoxService:
        return BoxService(
            self.session,
            self.user_repository,
            self.audit_service,
            self.box_repository,
            self.product_rfid_repository,
            self.box_generation_service,
            allocation_attempts=int(self.config.get("BOX_ALLOCATION_ATTEMPTS", 3)),
        )

    @cached_property
    def shipment_service(self) -> ShipmentService:
        return ShipmentService(
            self.session,
            self.user_repository,
            self.audit_service,
            self.shipment_repository,
            self.box_repository,
            self.shipment_generation_service,
        )

    @cached_property
    def log_service(self) -> LogService:
        return LogService(self.session, self.user_repository, self.audit_service, self.system_log_repository)
