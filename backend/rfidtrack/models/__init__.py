from .audit import SystemLog
from .auth import AuthToken, User
from .packing import Box, ProductRfid
from .shipping import Shipment

__all__ = ["AuthToken", "Box", "ProductRfid", "Shipment", "SystemLog", "User"]
