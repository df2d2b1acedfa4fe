"""
Shared API state - one resolver and simulator per process.

The rate table is read-only, so every request can use the same instances.
"""
from ..config.settings import get_settings
from ..engine.shipping_resolver import ShippingResolver
from ..services.simulator_service import SimulatorService

settings = get_settings()
resolver = ShippingResolver()
simulator = SimulatorService(resolver=resolver, settings=settings)
