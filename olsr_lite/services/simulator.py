"""链路状态仿真服务 - 串联拓扑修改、迟滞滤波与路由重算"""

import copy
import logging
import time
import yaml
from pathlib import Path
from typing import Dict, List, Optional

from olsr_lite.adapters.topology_io import EXPORT_VERSION, RouteExporter, TopologyImporter
from olsr_lite.core.graph import NetworkGraph
from olsr_lite.core.hysteresis import HysteresisController, HysteresisParams
from olsr_lite.core.router import RoutingIndex
from olsr_lite.core.topology import TopologyAnalyzer
from olsr_lite.models.link import LinkStatus
from olsr_lite.models.route import RouteTable

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "hysteresis": {
        "enabled": True,
        "alpha": 0.3,
        "theta_up": 1.6,
        "theta_down": 1.3,
        "hold_ms": 1000.0,
        "tick_ms": 100.0
    },
    "export": {
        "version": EXPORT_VERSION,
        "default_path": "build/routes_gui.json"
    },
    "default_topology": {
        "nodes": [
            {"label": "R1", "x": 100, "y": 100},
            {"label": "R2", "x": 200, "y": 100}
        ],
        "weight": 1.0
    },
    "analysis": {
        "key_node_threshold": 0.1
    }
}


def format_elapsed(elapsed_us: float) -> str:
    """把微秒耗时格式化为 'N ms' 或 'N micro-s'"""
    if elapsed_us >= 1000:
        return f"{int(elapsed_us // 1000)} ms"
    return f"{int(elapsed_us)} micro-s"


class LinkStateSimulator:
    """
    链路状态仿真器

    持有一张拓扑图、一个路由索引和一个迟滞控制器。核心组件之间没有
    自动传播，所有修改都由本服务在修改后显式重算路由。
    仿真时钟 now_ms 只通过 tick 推进。
    """

    def __init__(self, config_path: Optional[str] = None, config: Optional[Dict] = None):
        """
        初始化仿真器

        Args:
            config_path: 配置文件路径，如果为 None 则使用默认路径
            config: 直接传入的配置字典，优先于配置文件
        """
        self.config = self._merge_defaults(config) if config is not None else self._load_config(config_path)

        hyst_config = self.config.get("hysteresis", {})
        try:
            params = HysteresisParams.from_dict(hyst_config)
        except (TypeError, ValueError) as e:
            logger.warning(f"迟滞参数无法解析: {e}，使用默认参数")
            params = HysteresisParams()

        self.graph = NetworkGraph()
        self.router = RoutingIndex()
        self.hysteresis = HysteresisController()
        self.set_hysteresis_params(params)
        self.hysteresis_enabled = bool(hyst_config.get("enabled", True))
        self.now_ms = 0.0
        self.last_recompute_us = 0.0
        self.exporter = RouteExporter(version=str(self.config.get("export", {}).get("version", EXPORT_VERSION)))

    def _load_config(self, config_path: Optional[str] = None) -> Dict:
        """加载配置文件"""
        if config_path is None:
            config_path = Path(__file__).parent.parent.parent / "conf" / "config.yaml"
        else:
            config_path = Path(config_path)

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
            logger.info(f"配置文件加载成功: {config_path}")
            return self._merge_defaults(config)
        except FileNotFoundError:
            logger.warning(f"配置文件不存在: {config_path}，使用默认配置")
            return self._get_default_config()
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"加载配置文件失败: {e}，使用默认配置")
            return self._get_default_config()

    def _get_default_config(self) -> Dict:
        """获取默认配置"""
        return copy.deepcopy(DEFAULT_CONFIG)

    def _merge_defaults(self, config) -> Dict:
        """按节合并用户配置与默认配置"""
        merged = self._get_default_config()
        if not isinstance(config, dict):
            if config is not None:
                logger.warning("配置文件内容不是映射，使用默认配置")
            return merged

        for section, values in config.items():
            if not isinstance(merged.get(section), dict):
                merged[section] = values
            elif isinstance(values, dict):
                merged[section].update(values)
            elif values is not None:
                logger.warning(f"配置节 {section} 不是映射，使用默认值")
        return merged

    # ------------------------------------------------------------------ 拓扑来源
    def load_topology(self, path: str) -> Dict[int, int]:
        """
        从 JSON 文件加载拓扑，成功后替换当前拓扑并重算路由

        拓扑被替换时旧链路的迟滞状态一并丢弃。

        Raises:
            TopologyImportError: 拓扑文件加载失败，当前拓扑保持不变
        """
        graph = NetworkGraph()
        id_map = TopologyImporter().load(path, graph)
        self.graph = graph
        self.hysteresis.reset()
        self.recompute()
        return id_map

    def build_default(self) -> List[int]:
        """构建默认拓扑：配置中的节点依次串联"""
        topo = self.config.get("default_topology", {})
        weight = float(topo.get("weight", 1.0))

        ids = []
        for entry in topo.get("nodes") or []:
            ids.append(self.graph.add_node(str(entry.get("label")), entry.get("x", 0), entry.get("y", 0)))
        for u, v in zip(ids, ids[1:]):
            self.graph.add_link(u, v, weight)

        logger.info(f"使用默认拓扑: {len(ids)} 个节点")
        self.recompute()
        return ids

    # ------------------------------------------------------------------ 路由
    def recompute(self) -> float:
        """
        全量重算路由

        Returns:
            重算耗时（微秒）
        """
        start = time.perf_counter()
        self.router.recompute_all(self.graph)
        elapsed_us = (time.perf_counter() - start) * 1e6
        self.last_recompute_us = elapsed_us
        logger.debug(f"路由重算完成，耗时 {format_elapsed(elapsed_us)}")
        return elapsed_us

    def routes(self, src: int) -> Optional[RouteTable]:
        return self.router.table(src)

    # ------------------------------------------------------------------ 拓扑修改
    def jam_link(self, u: int, v: int) -> bool:
        """人工阻塞链路（置为 DOWN）并重算"""
        if not self.graph.set_link_status(u, v, LinkStatus.DOWN):
            logger.warning(f"链路 {u}-{v} 不存在，无法阻塞")
            return False
        elapsed = self.recompute()
        logger.info(f"链路 {u}-{v} 已阻塞 (重算耗时 {format_elapsed(elapsed)})")
        return True

    def unjam_link(self, u: int, v: int) -> bool:
        """解除人工阻塞（置为 UP）并重算"""
        if not self.graph.set_link_status(u, v, LinkStatus.UP):
            logger.warning(f"链路 {u}-{v} 不存在，无法解除阻塞")
            return False
        elapsed = self.recompute()
        logger.info(f"链路 {u}-{v} 已解除阻塞 (重算耗时 {format_elapsed(elapsed)})")
        return True

    def toggle_jam(self, u: int, v: int) -> bool:
        """UP 链路阻塞，DOWN 链路解除阻塞"""
        link = self.graph.find_link(u, v)
        if link is None:
            return False
        if link.is_up:
            return self.jam_link(u, v)
        return self.unjam_link(u, v)

    def set_link_weight(self, u: int, v: int, weight: float) -> bool:
        if not self.graph.set_link_weight(u, v, weight):
            return False
        self.recompute()
        return True

    def add_node(self, label: str, x: float = 0.0, y: float = 0.0) -> int:
        node_id = self.graph.add_node(label, x, y)
        self.recompute()
        return node_id

    def add_link(self, u: int, v: int, weight: float = 1.0) -> bool:
        if not self.graph.add_link(u, v, weight):
            return False
        self.recompute()
        return True

    def remove_node(self, node_id: int) -> bool:
        """删除节点，同时丢弃其关联链路的迟滞状态"""
        incident = [link.key for link in self.graph.incident_links(node_id)]
        if not self.graph.remove_node(node_id):
            return False
        for u, v in incident:
            self.hysteresis.forget(u, v)
        self.recompute()
        return True

    def remove_link(self, u: int, v: int) -> bool:
        """删除链路，同时丢弃其迟滞状态"""
        if not self.graph.remove_link(u, v):
            logger.warning(f"链路 {u}-{v} 不存在，无法删除")
            return False
        self.hysteresis.forget(u, v)
        elapsed = self.recompute()
        logger.info(f"链路 {u}-{v} 已删除 (重算耗时 {format_elapsed(elapsed)})")
        return True

    # ------------------------------------------------------------------ 迟滞控制
    def set_hysteresis_enabled(self, enabled: bool):
        self.hysteresis_enabled = bool(enabled)
        logger.info(f"迟滞滤波已{'启用' if self.hysteresis_enabled else '关闭'}")

    def set_hysteresis_params(self, params: HysteresisParams) -> List[str]:
        """
        替换迟滞参数，已有滤波状态保留

        Returns:
            参数问题列表（仅记录警告，不拒绝）
        """
        self.hysteresis.params = params
        problems = params.problems()
        for problem in problems:
            logger.warning(f"迟滞参数异常: {problem}")
        return problems

    # ------------------------------------------------------------------ 时间推进
    def tick(self, dt_ms: Optional[float] = None) -> float:
        """
        推进仿真时钟，执行迟滞滤波并重算路由

        Args:
            dt_ms: 时间步长（毫秒），默认取配置中的 tick_ms

        Returns:
            推进后的仿真时间
        """
        if dt_ms is None:
            dt_ms = float(self.config.get("hysteresis", {}).get("tick_ms", 100.0))

        self.now_ms += dt_ms
        if self.hysteresis_enabled:
            self.hysteresis.apply(self.graph, self.now_ms, dt_ms)
        self.recompute()
        return self.now_ms

    # ------------------------------------------------------------------ 输出
    def export(self, path: Optional[str] = None) -> Path:
        """
        导出拓扑与路由

        Raises:
            RouteExportError: 导出失败
        """
        if path is None:
            path = self.config.get("export", {}).get("default_path", "build/routes_gui.json")
        return self.exporter.export(self.graph, self.router, path)

    def summary(self) -> Dict:
        """拓扑概要：规模、连通性、关键节点与链路代价统计"""
        threshold = float(self.config.get("analysis", {}).get("key_node_threshold", 0.1))
        centrality = TopologyAnalyzer.calculate_betweenness_centrality(self.graph)
        return {
            "node_count": len(self.graph.nodes),
            "link_count": len(self.graph.links),
            "up_link_count": sum(1 for link in self.graph.links if link.is_up),
            "connected": TopologyAnalyzer.is_connected(self.graph),
            "betweenness_centrality": centrality,
            "key_nodes": TopologyAnalyzer.find_key_nodes(centrality, threshold=threshold),
            "link_cost": TopologyAnalyzer.link_cost_stats(self.graph),
            "now_ms": self.now_ms
        }
