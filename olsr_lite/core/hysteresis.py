"""链路迟滞控制器 - 指数滤波 + 保持时间的抗抖动状态机"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from olsr_lite.core.graph import NetworkGraph
from olsr_lite.models.link import LinkStatus, canonical_pair

logger = logging.getLogger(__name__)


@dataclass
class HysteresisParams:
    """迟滞参数"""
    alpha: float = 0.3  # EMA 平滑系数
    theta_up: float = 1.6  # 高于此值判定 DOWN
    theta_down: float = 1.3  # 低于此值恢复 UP
    hold_ms: float = 1000.0  # 同一链路两次状态翻转的最小间隔

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "HysteresisParams":
        """从配置字典构建，缺省项使用默认值"""
        data = data or {}
        defaults = cls()
        return cls(
            alpha=float(data.get("alpha", defaults.alpha)),
            theta_up=float(data.get("theta_up", defaults.theta_up)),
            theta_down=float(data.get("theta_down", defaults.theta_down)),
            hold_ms=float(data.get("hold_ms", defaults.hold_ms))
        )

    def problems(self) -> List[str]:
        """
        列出配置问题，不抛出异常

        控制器本身接受任意参数，是否拒绝由调用方决定。
        """
        issues = []
        if not 0.0 < self.alpha < 1.0:
            issues.append(f"alpha={self.alpha} 不在 (0, 1) 区间内")
        if self.theta_down > self.theta_up:
            issues.append(f"theta_down={self.theta_down} 大于 theta_up={self.theta_up}")
        if self.hold_ms < 0:
            issues.append(f"hold_ms={self.hold_ms} 为负数")
        return issues


@dataclass
class HysteresisState:
    """单条链路的滤波状态"""
    filtered: float
    status: LinkStatus = LinkStatus.UP
    last_change_ms: Optional[float] = None  # 尚未发生过翻转时为 None


class HysteresisController:
    """
    链路迟滞控制器

    对每条链路的代价做指数移动平均，并用双阈值 + 保持时间控制
    UP/DOWN 翻转，防止路由随测量噪声来回振荡。
    时间戳由调用方传入，控制器不读取系统时钟。
    """

    def __init__(self, params: Optional[HysteresisParams] = None):
        self.params = params or HysteresisParams()
        self._states: Dict[Tuple[int, int], HysteresisState] = {}

    def apply(self, graph: NetworkGraph, now_ms: float, dt_ms: float = 0.0):
        """
        对图中每条链路执行一次滤波与状态判定，并写回链路

        滤波值会成为链路的当前权重，作为下一次 apply 和路由计算的输入。

        Args:
            graph: 网络拓扑图
            now_ms: 当前时间戳（毫秒）
            dt_ms: 距上次调用的时间间隔（毫秒），滤波不使用
        """
        p = self.params
        for link in graph.links:
            key = link.key
            state = self._states.get(key)
            if state is None:
                state = HysteresisState(filtered=link.weight)
                self._states[key] = state
                logger.debug(f"链路 {key} 初始化滤波状态，filtered={link.weight}")

            # 人工阻塞优先，滤波器不能撤销
            if link.manually_jammed:
                link.weight = state.filtered
                continue

            state.filtered = p.alpha * link.weight + (1.0 - p.alpha) * state.filtered

            can_flip = state.last_change_ms is None or (now_ms - state.last_change_ms) >= p.hold_ms
            if state.status == LinkStatus.UP:
                if state.filtered >= p.theta_up and can_flip:
                    state.status = LinkStatus.DOWN
                    state.last_change_ms = now_ms
                    logger.info(f"链路 {key} 滤波代价 {state.filtered:.3f} >= {p.theta_up}，置为 DOWN")
            else:
                if state.filtered <= p.theta_down and can_flip:
                    state.status = LinkStatus.UP
                    state.last_change_ms = now_ms
                    logger.info(f"链路 {key} 滤波代价 {state.filtered:.3f} <= {p.theta_down}，恢复 UP")

            link.status = state.status
            link.weight = state.filtered

    def state(self, u: int, v: int) -> Optional[HysteresisState]:
        """查看链路的滤波状态，未观测过的链路返回 None"""
        return self._states.get(canonical_pair(u, v))

    def forget(self, u: int, v: int) -> bool:
        """丢弃链路的滤波状态，链路或端点被删除时由调用方使用"""
        return self._states.pop(canonical_pair(u, v), None) is not None

    def reset(self):
        self._states.clear()

    def __len__(self) -> int:
        return len(self._states)
