"""网络节点数据模型"""

from dataclasses import dataclass


@dataclass
class Node:
    """拓扑节点"""
    id: int
    label: str
    x: float = 0.0  # 仅用于展示，不参与路由
    y: float = 0.0
    up: bool = True  # 保留的存活标志，路由算法不使用

    def to_dict(self) -> dict:
        """转换为字典"""
        return {
            "id": self.id,
            "label": self.label
        }
