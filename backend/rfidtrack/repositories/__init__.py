from .interfaces import (
    BoxRepository,
    LogFilters,
    LogSummary,
    Page,
    ProductRfidRepository,
    RfidFilters,
    ShipmentRepository,
    SystemLogRepository,
    UserRepository,
)
from .sql import (
    SqlBoxRepository,
    SqlProductRfidRepository,
    SqlShipmentRepository,
    SqlSystemLogRepository,
    SqlUserRepository,
)
