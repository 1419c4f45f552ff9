"""HTTP gateways to the OPC facade (source) and the Fuse API (sink)."""

from .base import HttpGateway
from .fuse import FuseGateway
from .opc import OpcGateway

__all__ = ["HttpGateway", "OpcGateway", "FuseGateway"]
