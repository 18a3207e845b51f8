# Import every model so Base.metadata is complete for create_all / Alembic.
from db_models.user import User, Role, Permission, UserRole, RolePermission
from db_models.catalog import Brand, BikeModel
from db_models.bike import Bike, BikeStatus
from db_models.inventory_movement import InventoryMovement
from db_models.work_order import ServiceWorkOrder, WorkOrderStatus, Priority

__all__ = [
    "User",
    "Role",
    "Permission",
    "UserRole",
    "RolePermission",
    "Brand",
    "BikeModel",
    "Bike",
    "BikeStatus",
    "InventoryMovement",
    "ServiceWorkOrder",
    "WorkOrderStatus",
    "Priority",
]
