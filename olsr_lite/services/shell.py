"""交互式命令行 - 逐行解析命令并调用仿真服务"""

import json
import logging
import shlex
from typing import Callable, Dict, List, Optional

import click

from olsr_lite.adapters.topology_io import RouteExportError, TopologyImportError
from olsr_lite.core.hysteresis import HysteresisParams
from olsr_lite.services.simulator import LinkStateSimulator, format_elapsed

logger = logging.getLogger(__name__)

HELP_TEXT = """可用命令:
  nodes                     列出节点
  links                     列出链路
  routes [src]              查看路由表（默认第一个节点）
  jam <u> <v>               阻塞链路
  unjam <u> <v>             解除阻塞
  toggle <u> <v>            切换阻塞状态
  weight <u> <v> <w>        设置链路权重
  add-node <label> [x y]    添加节点
  add-link <u> <v> [w]      添加链路
  rm-node <id>              删除节点
  rm-link <u> <v>           删除链路
  tick [dt_ms]              推进时钟并执行迟滞滤波
  recompute                 重算路由
  load <path>               加载拓扑文件（失败时保留当前拓扑）
  hyst [on|off]             查看或切换迟滞滤波
  hyst-params <alpha> <theta_up> <theta_down> <hold_ms>
                            设置迟滞参数
  state <u> <v>             查看链路滤波状态
  summary                   拓扑概要
  export [path]             导出路由（默认使用 --export 或配置中的路径）
  quit | exit               退出"""


class ShellExit(Exception):
    """用户请求退出"""


class InteractiveShell:
    """交互式 Shell，execute 返回输出文本，便于脱离终端测试"""

    def __init__(self, simulator: LinkStateSimulator, export_path: Optional[str] = None):
        self.sim = simulator
        self.export_path = export_path
        self._commands: Dict[str, Callable[[List[str]], str]] = {
            "help": self._help,
            "nodes": self._nodes,
            "links": self._links,
            "routes": self._routes,
            "jam": self._jam,
            "unjam": self._unjam,
            "toggle": self._toggle,
            "weight": self._weight,
            "add-node": self._add_node,
            "add-link": self._add_link,
            "rm-node": self._rm_node,
            "rm-link": self._rm_link,
            "tick": self._tick,
            "recompute": self._recompute,
            "load": self._load,
            "hyst": self._hyst,
            "hyst-params": self._hyst_params,
            "state": self._state,
            "summary": self._summary,
            "export": self._export,
        }

    def execute(self, line: str) -> str:
        """
        执行一行命令

        Raises:
            ShellExit: 输入 quit/exit
        """
        try:
            parts = shlex.split(line)
        except ValueError as e:
            return f"命令解析失败: {e}"
        if not parts:
            return ""

        name, args = parts[0].lower(), parts[1:]
        if name in ("quit", "exit"):
            raise ShellExit()

        handler = self._commands.get(name)
        if handler is None:
            return f"未知命令: {name}（输入 help 查看帮助）"
        try:
            return handler(args)
        except (ValueError, IndexError):
            return f"参数错误: {line.strip()}"

    def run(self):
        """读取标准输入直到 quit 或 EOF"""
        click.echo("OLSR-lite 交互模式，输入 help 查看命令")
        while True:
            try:
                line = click.prompt("olsr", prompt_suffix="> ", default="", show_default=False)
            except (EOFError, click.Abort):
                break
            try:
                output = self.execute(line)
            except ShellExit:
                break
            if output:
                click.echo(output)

    # ------------------------------------------------------------------ 命令
    def _help(self, args: List[str]) -> str:
        return HELP_TEXT

    def _nodes(self, args: List[str]) -> str:
        lines = [f"  {n.id}: {n.label} ({n.x:g}, {n.y:g})" for n in self.sim.graph.nodes]
        return "\n".join(lines) or "（无节点）"

    def _links(self, args: List[str]) -> str:
        lines = []
        for link in self.sim.graph.links:
            flag = " [人工阻塞]" if link.manually_jammed else ""
            lines.append(f"  {link.u}-{link.v} weight={link.weight:.3f} {link.status.value}{flag}")
        return "\n".join(lines) or "（无链路）"

    def _routes(self, args: List[str]) -> str:
        if args:
            src = int(args[0])
        elif self.sim.graph.nodes:
            src = self.sim.graph.nodes[0].id
        else:
            return "（无节点）"

        table = self.sim.routes(src)
        if table is None:
            return f"节点 {src} 没有路由表"
        return format_route_table(src, table)

    def _jam(self, args: List[str]) -> str:
        u, v = int(args[0]), int(args[1])
        return self._timed(lambda: self.sim.jam_link(u, v), f"链路 {u}-{v} 已阻塞")

    def _unjam(self, args: List[str]) -> str:
        u, v = int(args[0]), int(args[1])
        return self._timed(lambda: self.sim.unjam_link(u, v), f"链路 {u}-{v} 已解除阻塞")

    def _toggle(self, args: List[str]) -> str:
        u, v = int(args[0]), int(args[1])
        return self._timed(lambda: self.sim.toggle_jam(u, v), f"链路 {u}-{v} 阻塞状态已切换")

    def _timed(self, action: Callable[[], bool], message: str) -> str:
        if not action():
            return "链路不存在"
        return f"{message} (重算耗时 {format_elapsed(self.sim.last_recompute_us)})"

    def _weight(self, args: List[str]) -> str:
        u, v, w = int(args[0]), int(args[1]), float(args[2])
        if not self.sim.set_link_weight(u, v, w):
            return "链路不存在"
        return f"链路 {u}-{v} 权重设为 {w:g}"

    def _add_node(self, args: List[str]) -> str:
        label = args[0]
        x = float(args[1]) if len(args) > 1 else 0.0
        y = float(args[2]) if len(args) > 2 else 0.0
        return f"已添加节点 {self.sim.add_node(label, x, y)}"

    def _add_link(self, args: List[str]) -> str:
        u, v = int(args[0]), int(args[1])
        w = float(args[2]) if len(args) > 2 else 1.0
        if not self.sim.add_link(u, v, w):
            return "添加链路失败（自环、节点不存在或链路已存在）"
        return f"已添加链路 {u}-{v}"

    def _rm_node(self, args: List[str]) -> str:
        node_id = int(args[0])
        if not self.sim.remove_node(node_id):
            return f"节点 {node_id} 不存在"
        return f"已删除节点 {node_id}"

    def _rm_link(self, args: List[str]) -> str:
        u, v = int(args[0]), int(args[1])
        if not self.sim.remove_link(u, v):
            return "链路不存在"
        return f"已删除链路 {u}-{v}"

    def _load(self, args: List[str]) -> str:
        path = args[0]
        try:
            id_map = self.sim.load_topology(path)
        except TopologyImportError as e:
            logger.error(f"拓扑加载失败: {e}")
            return f"加载失败: {e}"
        return f"已加载拓扑 {path}：{len(id_map)} 个节点，{len(self.sim.graph.links)} 条链路"

    def _hyst(self, args: List[str]) -> str:
        if args:
            switch = args[0].lower()
            if switch not in ("on", "off"):
                raise ValueError(switch)
            self.sim.set_hysteresis_enabled(switch == "on")
        p = self.sim.hysteresis.params
        state = "启用" if self.sim.hysteresis_enabled else "关闭"
        return (f"迟滞滤波{state}: alpha={p.alpha:g} theta_up={p.theta_up:g} "
                f"theta_down={p.theta_down:g} hold_ms={p.hold_ms:g}")

    def _hyst_params(self, args: List[str]) -> str:
        params = HysteresisParams(
            alpha=float(args[0]),
            theta_up=float(args[1]),
            theta_down=float(args[2]),
            hold_ms=float(args[3])
        )
        problems = self.sim.set_hysteresis_params(params)
        if problems:
            return "迟滞参数已应用，但存在问题:\n" + "\n".join(f"  {p}" for p in problems)
        return "迟滞参数已应用"

    def _tick(self, args: List[str]) -> str:
        dt = float(args[0]) if args else None
        return f"仿真时间 {self.sim.tick(dt):g} ms"

    def _recompute(self, args: List[str]) -> str:
        return f"路由已重算 (耗时 {format_elapsed(self.sim.recompute())})"

    def _state(self, args: List[str]) -> str:
        u, v = int(args[0]), int(args[1])
        st = self.sim.hysteresis.state(u, v)
        if st is None:
            return f"链路 {u}-{v} 尚无滤波状态"
        last = "-" if st.last_change_ms is None else f"{st.last_change_ms:g} ms"
        return f"链路 {u}-{v} filtered={st.filtered:.3f} status={st.status.value} last_change={last}"

    def _summary(self, args: List[str]) -> str:
        return json.dumps(self.sim.summary(), indent=2, ensure_ascii=False, default=str)

    def _export(self, args: List[str]) -> str:
        try:
            path = self.sim.export(args[0] if args else self.export_path)
        except RouteExportError as e:
            logger.error(str(e))
            return f"导出失败: {e}"
        return f"已导出到 {path}"


def format_route_table(src: int, table) -> str:
    """格式化路由表"""
    lines = [f"Routes from node {src}:"]
    for e in table:
        lines.append(f"  dest={e.destination} next={e.next_hop} cost={e.total_cost:g} hops={e.hop_count}")
    return "\n".join(lines)
