"""主入口 - CLI 命令行接口"""

import sys
import json
import logging
import click

from olsr_lite.adapters.topology_io import RouteExportError, TopologyImportError
from olsr_lite.services.shell import InteractiveShell, format_route_table
from olsr_lite.services.simulator import LinkStateSimulator

EXIT_OK = 0
EXIT_TOPOLOGY_FAILED = 1
EXIT_EXPORT_FAILED = 2


# 配置日志
def setup_logging(level: str = "INFO"):
    """设置日志"""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="[%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )


@click.command()
@click.option("--topo", "-t", type=click.Path(dir_okay=False), help="拓扑 JSON 文件路径（默认使用内置两节点拓扑）")
@click.option("--export", "-e", "export_path", type=click.Path(dir_okay=False), help="路由导出文件路径（交互模式下作为 export 命令的默认路径）")
@click.option("--headless", is_flag=True, help="非交互模式：计算一次后退出")
@click.option("--source", "-s", type=int, help="非交互模式下打印的路由表源节点（默认第一个节点）")
@click.option("--config", "-c", help="配置文件路径（默认: conf/config.yaml）")
@click.option("--verbose", "-v", is_flag=True, help="显示详细日志")
@click.option("--output", "-o", type=click.Choice(["text", "json"]), default="text", help="输出格式")
def main(topo, export_path, headless, source, config, verbose, output):
    """
    OLSR-lite 链路状态路由仿真

    加载拓扑，计算所有节点的最短路径路由表，可导出为 JSON，
    或进入交互模式阻塞链路、调整权重并观察路由变化。
    """
    log_level = "DEBUG" if verbose else "INFO"
    setup_logging(log_level)

    logger = logging.getLogger(__name__)

    try:
        sim = LinkStateSimulator(config_path=config)

        if topo:
            try:
                sim.load_topology(topo)
            except TopologyImportError as e:
                logger.error(f"拓扑加载失败: {e}")
                sys.exit(EXIT_TOPOLOGY_FAILED)
        else:
            sim.build_default()

        if not headless:
            InteractiveShell(sim, export_path=export_path).run()
            sys.exit(EXIT_OK)

        if export_path:
            try:
                path = sim.export(export_path)
            except RouteExportError as e:
                logger.error(f"导出失败: {e}")
                sys.exit(EXIT_EXPORT_FAILED)
            click.echo(f"Exported routes to {path}")
            sys.exit(EXIT_OK)

        # 打印单个源节点的路由表
        nodes = sim.graph.nodes
        if nodes:
            src = source if source is not None else nodes[0].id
            table = sim.routes(src)
            if table is None:
                logger.warning(f"节点 {src} 不存在")
            elif output == "json":
                click.echo(json.dumps([e.to_dict() for e in table], indent=2))
            else:
                click.echo(format_route_table(src, table))

        sys.exit(EXIT_OK)

    except KeyboardInterrupt:
        logger.info("\n用户中断操作")
        sys.exit(130)
    except Exception as e:
        logger.error(f"运行过程中发生错误: {e}", exc_info=verbose)
        sys.exit(1)


if __name__ == "__main__":
    main()
