"""最短路径引擎 - 带第一跳追踪的单源 Dijkstra"""

import heapq
import logging
import math
from typing import Dict, List, Tuple

from olsr_lite.core.graph import NetworkGraph
from olsr_lite.models.route import RouteEntry, RouteTable

logger = logging.getLogger(__name__)


class ShortestPathEngine:
    """最短路径引擎，无内部状态"""

    @staticmethod
    def compute(graph: NetworkGraph, source: int) -> RouteTable:
        """
        计算单源最短路径路由表

        只考虑 UP 状态的链路，DOWN 链路对寻路不可见。
        优先队列采用惰性删除：重复入队，出队时丢弃过期项，不做 decrease-key。
        松弛使用严格小于，等价路径保留先发现的一条，结果取决于链路枚举顺序。

        Args:
            graph: 网络拓扑图
            source: 源节点 ID

        Returns:
            按目的节点 ID 升序排列的路由表；源节点不存在时返回空表
        """
        if not graph.node_exists(source):
            logger.debug(f"源节点 {source} 不存在，返回空路由表")
            return []

        # 按链路插入顺序构建 UP 邻接表
        adjacency: Dict[int, List[Tuple[int, float]]] = {node.id: [] for node in graph.nodes}
        for link in graph.links:
            if not link.is_up:
                continue
            adjacency[link.u].append((link.v, link.weight))
            adjacency[link.v].append((link.u, link.weight))

        dist = {node_id: math.inf for node_id in adjacency}
        hops = {node_id: 0 for node_id in adjacency}
        parent: Dict[int, int] = {}
        first_hop: Dict[int, int] = {}
        dist[source] = 0.0

        queue = [(0.0, source)]
        while queue:
            cost, node = heapq.heappop(queue)
            if cost > dist[node]:
                continue

            for neighbor, weight in adjacency[node]:
                candidate = dist[node] + weight
                if candidate < dist[neighbor]:
                    dist[neighbor] = candidate
                    parent[neighbor] = node
                    hops[neighbor] = hops[node] + 1
                    first_hop[neighbor] = neighbor if node == source else first_hop[node]
                    heapq.heappush(queue, (candidate, neighbor))

        table = [
            RouteEntry(
                destination=node_id,
                next_hop=first_hop[node_id],
                total_cost=d,
                hop_count=hops[node_id]
            )
            for node_id, d in dist.items()
            if node_id != source and d != math.inf and node_id in first_hop
        ]
        table.sort(key=lambda entry: entry.destination)
        return table
