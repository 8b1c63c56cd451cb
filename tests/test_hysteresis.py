"""迟滞控制器测试（使用合成时钟）"""

import sys
from pathlib import Path

import pytest

# 添加项目根目录到路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from olsr_lite.core.graph import NetworkGraph
from olsr_lite.core.hysteresis import HysteresisController, HysteresisParams
from olsr_lite.core.router import RoutingIndex
from olsr_lite.models.link import LinkStatus


def _pair(weight=1.0):
    g = NetworkGraph()
    a = g.add_node("A")
    b = g.add_node("B")
    g.add_link(a, b, weight)
    return g, a, b


def test_state_created_lazily_and_canonical():
    """测试滤波状态惰性创建，且两个方向指向同一记录"""
    g, a, b = _pair(1.2)
    ctrl = HysteresisController()
    assert ctrl.state(a, b) is None
    assert len(ctrl) == 0

    ctrl.apply(g, now_ms=0.0, dt_ms=0.0)
    st = ctrl.state(a, b)
    assert st is not None
    assert st is ctrl.state(b, a)
    assert st.filtered == pytest.approx(1.2)
    assert st.status == LinkStatus.UP
    assert st.last_change_ms is None
    assert len(ctrl) == 1


def test_ema_converges_monotonically():
    """测试权重保持不变时，滤波值到目标值的距离单调不增"""
    g, a, b = _pair(1.0)
    ctrl = HysteresisController(HysteresisParams(alpha=0.3, theta_up=100.0, theta_down=50.0))
    ctrl.apply(g, 0.0, 0.0)

    target = 4.0
    previous = abs(ctrl.state(a, b).filtered - target)
    for step in range(1, 30):
        g.set_link_weight(a, b, target)
        ctrl.apply(g, step * 100.0, 100.0)
        distance = abs(ctrl.state(a, b).filtered - target)
        assert distance <= previous
        previous = distance

    assert previous < 0.01
    # 滤波值写回链路
    assert g.find_link(a, b).weight == pytest.approx(ctrl.state(a, b).filtered)


def test_ema_formula():
    """测试单步 EMA 计算"""
    g, a, b = _pair(1.0)
    ctrl = HysteresisController(HysteresisParams(alpha=0.25, theta_up=100.0, theta_down=50.0))
    ctrl.apply(g, 0.0, 0.0)
    g.set_link_weight(a, b, 3.0)
    ctrl.apply(g, 10.0, 10.0)
    assert ctrl.state(a, b).filtered == pytest.approx(0.25 * 3.0 + 0.75 * 1.0)


def test_hold_down_blocks_second_flip():
    """测试保持时间内第二次越界不翻转"""
    g, a, b = _pair(1.0)
    ctrl = HysteresisController(HysteresisParams(alpha=0.9, theta_up=1.6, theta_down=1.3, hold_ms=1000.0))

    g.set_link_weight(a, b, 5.0)
    ctrl.apply(g, 0.0, 0.0)
    assert ctrl.state(a, b).status == LinkStatus.DOWN
    assert ctrl.state(a, b).last_change_ms == 0.0
    assert g.find_link(a, b).status == LinkStatus.DOWN
    status_at_0 = g.find_link(a, b).status

    g.set_link_weight(a, b, 0.0)
    ctrl.apply(g, 500.0, 500.0)
    assert ctrl.state(a, b).filtered <= 1.3
    assert g.find_link(a, b).status == status_at_0
    assert ctrl.state(a, b).last_change_ms == 0.0

    g.set_link_weight(a, b, 0.0)
    ctrl.apply(g, 1000.0, 500.0)
    assert g.find_link(a, b).status == LinkStatus.UP
    assert ctrl.state(a, b).last_change_ms == 1000.0


def test_hysteresis_band_prevents_chatter():
    """测试双阈值之间的滤波值不引起翻转"""
    g, a, b = _pair(1.0)
    ctrl = HysteresisController(HysteresisParams(alpha=0.9, theta_up=1.6, theta_down=1.3, hold_ms=0.0))

    g.set_link_weight(a, b, 2.0)
    ctrl.apply(g, 0.0, 0.0)
    assert g.find_link(a, b).status == LinkStatus.DOWN

    # 1.45 位于 (theta_down, theta_up) 之间，保持 DOWN
    for t in range(1, 10):
        g.set_link_weight(a, b, 1.45)
        ctrl.apply(g, t * 100.0, 100.0)
        assert g.find_link(a, b).status == LinkStatus.DOWN


def test_manual_jam_is_never_undone():
    """测试人工阻塞的链路不会被滤波器恢复为 UP"""
    g, a, b = _pair(1.0)
    ctrl = HysteresisController(HysteresisParams(hold_ms=0.0))
    ctrl.apply(g, 0.0, 0.0)

    g.set_link_status(a, b, LinkStatus.DOWN)
    for t in range(1, 20):
        g.set_link_weight(a, b, 0.0)
        ctrl.apply(g, t * 1000.0, 1000.0)
        link = g.find_link(a, b)
        assert link.status == LinkStatus.DOWN
        assert link.manually_jammed
        # 显示权重保持为最后的滤波值
        assert link.weight == pytest.approx(1.0)

    assert ctrl.state(a, b).filtered == pytest.approx(1.0)


def test_hysteresis_output_feeds_routing():
    """测试滤波器翻转的状态进入路由计算"""
    g = NetworkGraph()
    a, b, c = (g.add_node(name) for name in ("A", "B", "C"))
    g.add_link(a, b, 1.0)
    g.add_link(b, c, 1.0)
    ctrl = HysteresisController(HysteresisParams(alpha=0.9, hold_ms=0.0))
    router = RoutingIndex()

    ctrl.apply(g, 0.0, 0.0)
    router.recompute_all(g)
    assert router.route(a, c) is not None

    g.set_link_weight(b, c, 10.0)
    ctrl.apply(g, 100.0, 100.0)
    router.recompute_all(g)
    assert g.find_link(b, c).status == LinkStatus.DOWN
    assert router.route(a, c) is None


def test_forget_and_reset():
    """测试显式丢弃滤波状态"""
    g, a, b = _pair(1.0)
    ctrl = HysteresisController()
    ctrl.apply(g, 0.0, 0.0)

    assert ctrl.forget(b, a)
    assert ctrl.state(a, b) is None
    assert not ctrl.forget(a, b)

    g.set_link_weight(a, b, 2.0)
    ctrl.apply(g, 100.0, 100.0)
    assert ctrl.state(a, b).filtered == pytest.approx(2.0)

    ctrl.reset()
    assert len(ctrl) == 0


def test_state_survives_node_removal():
    """测试删除节点不会自动清理滤波状态"""
    g, a, b = _pair(1.0)
    ctrl = HysteresisController()
    ctrl.apply(g, 0.0, 0.0)
    g.remove_node(b)
    ctrl.apply(g, 100.0, 100.0)
    assert ctrl.state(a, b) is not None


def test_params_problems_reported_without_raising():
    """测试参数检查只报告问题，控制器仍然接受"""
    assert HysteresisParams().problems() == []

    bad = HysteresisParams(alpha=1.5, theta_up=1.0, theta_down=2.0, hold_ms=-1.0)
    assert len(bad.problems()) == 3

    g, a, b = _pair(1.0)
    ctrl = HysteresisController(bad)
    ctrl.apply(g, 0.0, 0.0)
    assert ctrl.state(a, b) is not None


def test_params_from_dict():
    """测试从配置字典构建参数"""
    params = HysteresisParams.from_dict({"alpha": 0.5, "hold_ms": 250})
    assert params.alpha == 0.5
    assert params.hold_ms == 250.0
    assert params.theta_up == 1.6
    assert HysteresisParams.from_dict(None) == HysteresisParams()
