from .auth import User, SessionToken
from .inventory import Material, Design
from .orders import Order, OrderItem
from .products import Product, ProductMaterial, ProductDesign

__all__ = [
    'User', 'SessionToken',
    'Material', 'Design',
    'Order', 'OrderItem',
    'Product', 'ProductMaterial', 'ProductDesign',
]
