from .users import User
from .cubbies import Cubby, CubbyRental
from .inventory import InventoryItem
from .sales import Sale, SaleItem
from .earnings import SellerEarning, SellerPayout
from .settings import SystemSetting

__all__ = [
    'User',
    'Cubby', 'CubbyRental',
    'InventoryItem',
    'Sale', 'SaleItem',
    'SellerEarning', 'SellerPayout',
    'SystemSetting',
]
