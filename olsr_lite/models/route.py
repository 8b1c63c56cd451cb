"""路由表数据模型"""

from dataclasses import dataclass
from typing import List


@dataclass
class RouteEntry:
    """单条路由表项"""
    destination: int
    next_hop: int  # 源节点在最短路径上的第一跳邻居
    total_cost: float
    hop_count: int

    def to_dict(self) -> dict:
        """转换为字典"""
        return {
            "destination": self.destination,
            "next_hop": self.next_hop,
            "total_cost": self.total_cost,
            "hop_count": self.hop_count
        }


# 按目的节点 ID 严格升序排列，不含源节点与不可达节点
RouteTable = List[RouteEntry]
