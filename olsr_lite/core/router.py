"""路由索引 - 缓存每个节点的路由表"""

import logging
from typing import Dict, List, Optional

from olsr_lite.core.dijkstra import ShortestPathEngine
from olsr_lite.core.graph import NetworkGraph
from olsr_lite.models.route import RouteEntry, RouteTable

logger = logging.getLogger(__name__)


class RoutingIndex:
    """
    路由索引

    不做脏标记：拓扑、权重或状态变化后必须由调用方显式调用
    recompute_all，否则读到的是上一次重算时的结果。
    """

    def __init__(self, engine: Optional[ShortestPathEngine] = None):
        self._engine = engine or ShortestPathEngine()
        self._tables: Dict[int, RouteTable] = {}

    def recompute_all(self, graph: NetworkGraph):
        """丢弃全部缓存，为图中每个节点重新计算路由表"""
        tables = {}
        for node in graph.nodes:
            tables[node.id] = self._engine.compute(graph, node.id)
        self._tables = tables
        logger.debug(f"已为 {len(tables)} 个节点重算路由表")

    def table(self, src: int) -> Optional[RouteTable]:
        """返回缓存的路由表，未计算过的节点返回 None"""
        return self._tables.get(src)

    def route(self, src: int, dst: int) -> Optional[RouteEntry]:
        """查找 src 到 dst 的路由表项"""
        for entry in self._tables.get(src) or []:
            if entry.destination == dst:
                return entry
        return None

    def sources(self) -> List[int]:
        return sorted(self._tables)

    def __len__(self) -> int:
        return len(self._tables)
