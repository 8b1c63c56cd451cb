"""核心算法层"""

from .graph import NetworkGraph
from .dijkstra import ShortestPathEngine
from .router import RoutingIndex
from .hysteresis import HysteresisController, HysteresisParams, HysteresisState
from .topology import TopologyAnalyzer

__all__ = [
    "NetworkGraph",
    "ShortestPathEngine",
    "RoutingIndex",
    "HysteresisController",
    "HysteresisParams",
    "HysteresisState",
    "TopologyAnalyzer",
]
