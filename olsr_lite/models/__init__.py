"""数据模型层"""

from .link import Link, LinkStatus, canonical_pair
from .node import Node
from .route import RouteEntry, RouteTable

__all__ = ["Link", "LinkStatus", "canonical_pair", "Node", "RouteEntry", "RouteTable"]
