"""Engine subpackage - shipping resolution and film roll formulas."""
from .shipping_resolver import ShippingResolver, resolve_shipping
from .models import ShippingRequest, ShippingResult

__all__ = ['ShippingResolver', 'resolve_shipping', 'ShippingRequest', 'ShippingResult']
