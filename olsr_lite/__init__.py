"""OLSR-lite 链路状态路由仿真"""

__version__ = "1.0.0"
