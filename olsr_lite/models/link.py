"""链路数据模型"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class LinkStatus(str, Enum):
    """链路状态，取值即导出格式中的字符串"""
    UP = "UP"
    DOWN = "DOWN"


def canonical_pair(u: int, v: int) -> Tuple[int, int]:
    """无向链路的规范键 (min, max)，保证 (u, v) 与 (v, u) 指向同一记录"""
    return (u, v) if u < v else (v, u)


@dataclass
class Link:
    """无向链路"""
    u: int
    v: int
    weight: float
    orig_weight: float
    status: LinkStatus = LinkStatus.UP
    jammed: bool = False  # 保留字段
    manually_jammed: bool = False  # 调用方显式置 DOWN 时为 True

    @property
    def key(self) -> Tuple[int, int]:
        return canonical_pair(self.u, self.v)

    @property
    def is_up(self) -> bool:
        return self.status == LinkStatus.UP

    def connects(self, u: int, v: int) -> bool:
        """判断链路是否连接 u 与 v（不区分方向）"""
        return self.key == canonical_pair(u, v)

    def other(self, node_id: int) -> int:
        """返回链路另一端的节点 ID"""
        return self.v if node_id == self.u else self.u

    def to_dict(self) -> dict:
        """转换为字典"""
        return {
            "u": self.u,
            "v": self.v,
            "weight": self.weight,
            "status": self.status.value
        }
