"""网络拓扑图 - 节点与无向链路的唯一可变数据源"""

import logging
from typing import Dict, List, Optional

import networkx as nx

from olsr_lite.models.link import Link, LinkStatus, canonical_pair
from olsr_lite.models.node import Node

logger = logging.getLogger(__name__)


class NetworkGraph:
    """
    网络拓扑图

    节点 ID 由单调递增计数器分配，删除后不回收；链路以规范键 (min, max)
    存储，同一对节点之间至多一条链路。所有修改操作返回布尔值表示成败，
    不抛出异常。
    """

    def __init__(self):
        self._nodes: Dict[int, Node] = {}
        self._links: Dict[tuple, Link] = {}
        self._next_id = 1

    @property
    def nodes(self) -> List[Node]:
        """按插入顺序返回所有节点"""
        return list(self._nodes.values())

    @property
    def links(self) -> List[Link]:
        """按插入顺序返回所有链路"""
        return list(self._links.values())

    def add_node(self, label: str, x: float = 0.0, y: float = 0.0) -> int:
        """
        添加节点

        Args:
            label: 显示名称
            x: 横坐标（仅用于展示）
            y: 纵坐标（仅用于展示）

        Returns:
            新分配的节点 ID
        """
        node_id = self._next_id
        self._next_id += 1
        self._nodes[node_id] = Node(id=node_id, label=label, x=float(x), y=float(y))
        logger.debug(f"添加节点 {node_id} ({label})")
        return node_id

    def remove_node(self, node_id: int) -> bool:
        """
        删除节点及其所有关联链路

        不通知路由索引或迟滞控制器，由调用方自行重算。

        Returns:
            节点不存在时返回 False
        """
        if node_id not in self._nodes:
            logger.debug(f"删除节点失败，节点 {node_id} 不存在")
            return False

        for key in [k for k in self._links if node_id in k]:
            del self._links[key]
        del self._nodes[node_id]
        logger.debug(f"已删除节点 {node_id}")
        return True

    def add_link(self, u: int, v: int, weight: float) -> bool:
        """
        添加无向链路

        自环、端点不存在或链路已存在（任一方向）时失败。
        新链路状态为 UP，weight 与 orig_weight 均为给定权重。
        """
        if u == v:
            logger.debug(f"拒绝自环链路 {u}-{v}")
            return False
        if not self.node_exists(u) or not self.node_exists(v):
            logger.debug(f"拒绝链路 {u}-{v}：端点不存在")
            return False

        key = canonical_pair(u, v)
        if key in self._links:
            logger.debug(f"拒绝重复链路 {u}-{v}")
            return False

        weight = float(weight)
        self._links[key] = Link(u=u, v=v, weight=weight, orig_weight=weight)
        return True

    def remove_link(self, u: int, v: int) -> bool:
        """
        删除链路（不区分方向）

        与 remove_node 一样不通知路由索引或迟滞控制器。

        Returns:
            链路不存在时返回 False
        """
        if self._links.pop(canonical_pair(u, v), None) is None:
            logger.debug(f"删除链路失败，链路 {u}-{v} 不存在")
            return False
        logger.debug(f"已删除链路 {u}-{v}")
        return True

    def set_link_status(self, u: int, v: int, status: LinkStatus) -> bool:
        """
        设置链路状态

        显式置为 DOWN 视为人工阻塞（manually_jammed=True），置为 UP 则清除。
        """
        link = self.find_link(u, v)
        if link is None:
            return False

        status = LinkStatus(status)
        link.status = status
        link.manually_jammed = status == LinkStatus.DOWN
        return True

    def set_link_weight(self, u: int, v: int, weight: float) -> bool:
        """
        设置链路当前权重

        仅当链路未处于 jammed 状态时同步更新 orig_weight，
        避免把滤波后的权重误当作基线。
        """
        link = self.find_link(u, v)
        if link is None:
            return False

        link.weight = float(weight)
        if not link.jammed:
            link.orig_weight = link.weight
        return True

    def find_link(self, u: int, v: int) -> Optional[Link]:
        """不区分方向查找链路"""
        return self._links.get(canonical_pair(u, v))

    def node_exists(self, node_id: int) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: int) -> Optional[Node]:
        return self._nodes.get(node_id)

    def incident_links(self, node_id: int) -> List[Link]:
        """返回与节点相连的所有链路（不论状态）"""
        return [link for key, link in self._links.items() if node_id in key]

    def neighbors(self, node_id: int) -> List[int]:
        """返回经 UP 链路直接相连的邻居"""
        return [link.other(node_id) for link in self.incident_links(node_id) if link.is_up]

    def to_networkx(self, up_only: bool = True) -> nx.Graph:
        """
        转换为 networkx 无向图，供拓扑分析使用

        Args:
            up_only: 是否只包含 UP 状态的链路

        Returns:
            节点为节点 ID、边带 weight 属性的 nx.Graph
        """
        G = nx.Graph()
        for node in self._nodes.values():
            G.add_node(node.id, label=node.label)
        for link in self._links.values():
            if up_only and not link.is_up:
                continue
            G.add_edge(link.u, link.v, weight=link.weight)
        return G

    def __len__(self) -> int:
        return len(self._nodes)
