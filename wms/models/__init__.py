"""
Models package: import every model so SQLAlchemy's Base.metadata
knows about all tables (critical for Alembic autogenerate).
"""

from wms.models.base import Base, CompanyScopedMixin, TimestampMixin, UUIDPrimaryKeyMixin
from wms.models.user import Profile, ProfileStatus
from wms.models.role import Role, user_roles, role_permissions
from wms.models.permission import Permission
from wms.models.session import UserSession
from wms.models.password_reset import PasswordResetToken
from wms.models.company import Company, LocationType
from wms.models.location import Bin, WarehouseRow, WarehouseZone, ZoneType
from wms.models.allocation import AllocationType, ClientAllocation
from wms.models.product import ClientProduct
from wms.models.inventory import InventoryItem
from wms.models.order import ClientOrder, ClientOrderItem, OrderStatus
from wms.models.requests import CheckInRequest, CheckOutRequest, RequestStatus
from wms.models.shipment import Shipment, ShipmentItem, ShipmentStatus
from wms.models.message import Message, MessagePriority, MessageStatus, MessageType
from wms.models.activity import AdminSession, ClientActivityLog
from wms.models.delivery import (
    CarrierType,
    DeliveryCarrier,
    DeliveryDriver,
    DeliveryOrder,
    DeliveryOrderItem,
    DeliveryOrderStatus,
    DeliverySource,
    DeliveryTrackingEvent,
    DeliveryType,
    DriverStatus,
    PickStatus,
)
from wms.models.financial import FinancialTransaction, TransactionCategory, TransactionType
from wms.models.report import ReconciliationReport

__all__ = [
    "Base",
    "CompanyScopedMixin",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Profile",
    "ProfileStatus",
    "Role",
    "user_roles",
    "role_permissions",
    "Permission",
    "UserSession",
    "PasswordResetToken",
    "Company",
    "LocationType",
    "Bin",
    "WarehouseRow",
    "WarehouseZone",
    "ZoneType",
    "AllocationType",
    "ClientAllocation",
    "ClientProduct",
    "InventoryItem",
    "ClientOrder",
    "ClientOrderItem",
    "OrderStatus",
    "CheckInRequest",
    "CheckOutRequest",
    "RequestStatus",
    "Shipment",
    "ShipmentItem",
    "ShipmentStatus",
    "Message",
    "MessagePriority",
    "MessageStatus",
    "MessageType",
    "AdminSession",
    "ClientActivityLog",
    "CarrierType",
    "DeliveryCarrier",
    "DeliveryDriver",
    "DeliveryOrder",
    "DeliveryOrderItem",
    "DeliveryOrderStatus",
    "DeliverySource",
    "DeliveryTrackingEvent",
    "DeliveryType",
    "DriverStatus",
    "PickStatus",
    "FinancialTransaction",
    "TransactionCategory",
    "TransactionType",
    "ReconciliationReport",
]
