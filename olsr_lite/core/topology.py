"""拓扑分析器 - 基于 UP 子图的图论指标"""

import networkx as nx
import numpy as np
from typing import List, Dict

from olsr_lite.core.graph import NetworkGraph


class TopologyAnalyzer:
    """拓扑分析器，计算连通性、介数中心性与链路代价统计"""

    @staticmethod
    def calculate_betweenness_centrality(graph: NetworkGraph,
                                         normalized: bool = True) -> Dict[int, float]:
        """
        计算介数中心性 (Betweenness Centrality)

        只统计 UP 链路构成的子图，最短路径按链路权重计算。
        值越高，说明该节点承载的最短路径越多，越关键。

        Args:
            graph: 网络拓扑图
            normalized: 是否归一化

        Returns:
            每个节点的介数中心性字典 {node_id: centrality_value}
        """
        G = graph.to_networkx(up_only=True)

        # 如果图为空或只有一个节点，返回零值
        if G.number_of_nodes() <= 1:
            return {node: 0.0 for node in G.nodes()}

        return nx.betweenness_centrality(G, normalized=normalized, weight="weight")

    @staticmethod
    def find_key_nodes(centrality: Dict[int, float],
                       threshold: float = 0.1) -> List[int]:
        """
        识别关键节点

        Args:
            centrality: 介数中心性字典
            threshold: 相对阈值，中心性不低于 threshold × 最大值的节点视为关键节点

        Returns:
            按 ID 升序的关键节点列表
        """
        if not centrality:
            return []

        max_centrality = max(centrality.values())
        if max_centrality == 0:
            return []

        relative_threshold = threshold * max_centrality
        return sorted(node for node, cent in centrality.items() if cent >= relative_threshold)

    @staticmethod
    def is_connected(graph: NetworkGraph) -> bool:
        """UP 子图是否连通（空图视为连通）"""
        G = graph.to_networkx(up_only=True)
        if G.number_of_nodes() == 0:
            return True
        return nx.is_connected(G)

    @staticmethod
    def link_cost_stats(graph: NetworkGraph) -> Dict[str, float]:
        """
        统计所有链路当前权重

        Returns:
            {'count', 'mean', 'std', 'min', 'max'}，无链路时全部为 0
        """
        weights = np.array([link.weight for link in graph.links], dtype=float)
        if weights.size == 0:
            return {"count": 0, "mean": 0.0, "std": 0.0, "min": 0.0, "max": 0.0}

        return {
            "count": int(weights.size),
            "mean": float(np.mean(weights)),
            "std": float(np.std(weights)),
            "min": float(np.min(weights)),
            "max": float(np.max(weights))
        }
