"""拓扑文件导入与路由导出 - 封装 JSON 文件格式"""

import json
import logging
import time
from pathlib import Path
from typing import Dict, Optional

from olsr_lite.core.graph import NetworkGraph
from olsr_lite.core.router import RoutingIndex

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0.0"


class TopologyImportError(RuntimeError):
    """拓扑文件无法读取或解析"""


class RouteExportError(RuntimeError):
    """路由导出文件无法写入"""


class TopologyImporter:
    """拓扑导入器，读取 JSON 拓扑并写入 NetworkGraph"""

    def load(self, path, graph: NetworkGraph) -> Dict[int, int]:
        """
        从文件加载拓扑

        Args:
            path: 拓扑文件路径
            graph: 目标拓扑图

        Returns:
            文件内节点 ID 到图内节点 ID 的映射

        Raises:
            TopologyImportError: 文件不存在、JSON 非法或条目格式错误
        """
        path = Path(path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except OSError as e:
            raise TopologyImportError(f"无法打开拓扑文件 {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise TopologyImportError(f"拓扑文件不是合法 JSON: {e}") from e

        id_map = self.load_data(data, graph)
        logger.info(f"拓扑文件加载成功: {path}，{len(id_map)} 个节点，{len(graph.links)} 条链路")
        return id_map

    def load_data(self, data: dict, graph: NetworkGraph) -> Dict[int, int]:
        """
        从已解析的字典加载拓扑

        文件内的节点 ID 可以不连续，加载时重新分配。
        引用未知节点的链路、自环和重复链路会被跳过。
        先解析全部条目再写入，解析失败时目标图保持不变。

        Raises:
            TopologyImportError: 条目缺少必填字段或类型错误
        """
        if not isinstance(data, dict):
            raise TopologyImportError("拓扑文件顶层必须是 JSON 对象")

        nodes = []
        try:
            for entry in data.get("nodes") or []:
                file_id = int(entry["id"])
                label = str(entry.get("label", file_id))
                nodes.append((file_id, label, float(entry.get("x", 0.0)), float(entry.get("y", 0.0))))
            links = [
                (int(entry["u"]), int(entry["v"]), float(entry.get("weight", 1.0)))
                for entry in data.get("links") or []
            ]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise TopologyImportError(f"拓扑解析错误: {e!r}") from e

        id_map: Dict[int, int] = {}
        for file_id, label, x, y in nodes:
            id_map[file_id] = graph.add_node(label, x, y)

        skipped = 0
        for u, v, weight in links:
            if u not in id_map or v not in id_map:
                skipped += 1
                continue
            if not graph.add_link(id_map[u], id_map[v], weight):
                skipped += 1

        if skipped:
            logger.debug(f"跳过 {skipped} 条无效链路")
        return id_map


class RouteExporter:
    """路由导出器，将拓扑与路由表写为 JSON"""

    def __init__(self, version: str = EXPORT_VERSION):
        self.version = version

    def build(self, graph: NetworkGraph, router: RoutingIndex,
              timestamp_ms: Optional[int] = None) -> dict:
        """
        构建导出文档

        Args:
            graph: 网络拓扑图
            router: 路由索引，只导出已缓存路由表的源节点
            timestamp_ms: 时间戳，默认取当前系统时间

        Returns:
            导出字典
        """
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)

        routes = {}
        for node in graph.nodes:
            table = router.table(node.id)
            if table is None:
                continue
            routes[str(node.id)] = [entry.to_dict() for entry in table]

        return {
            "meta": {"version": self.version, "timestamp_ms": timestamp_ms},
            "nodes": [node.to_dict() for node in graph.nodes],
            "links": [link.to_dict() for link in graph.links],
            "routes": routes
        }

    def export(self, graph: NetworkGraph, router: RoutingIndex, path) -> Path:
        """
        导出到文件

        Raises:
            RouteExportError: 文件无法写入
        """
        path = Path(path)
        document = self.build(graph, router)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                f.write(json.dumps(document, indent=2, ensure_ascii=False))
                f.write("\n")
        except OSError as e:
            raise RouteExportError(f"导出失败 ({path}): {e}") from e

        logger.info(f"路由已导出到 {path}")
        return path
