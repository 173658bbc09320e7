from .auth import User, UserPagePermission, SessionToken
from .customers import Customer, CustomerStatus
from .drivers import Driver, DriverStatus
from .items import Item, UnitOfMeasure
from .orders import (
    Order,
    OrderLine,
    OrderStatus,
    PaymentMethod,
    Frequency,
    ImageType,
    MAX_IMAGES_PER_TYPE,
    DELETABLE_STATUSES,
)
from .audit import AuditRecord, AuditAction

__all__ = [
    'User', 'UserPagePermission', 'SessionToken',
    'Customer', 'CustomerStatus',
    'Driver', 'DriverStatus',
    'Item', 'UnitOfMeasure',
    'Order', 'OrderLine', 'OrderStatus', 'PaymentMethod', 'Frequency', 'ImageType',
    'MAX_IMAGES_PER_TYPE', 'DELETABLE_STATUSES',
    'AuditRecord', 'AuditAction',
]
