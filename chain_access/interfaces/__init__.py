"""Protocol interfaces for chain access."""
from .chain import ChainAccess

__all__ = ["ChainAccess"]
