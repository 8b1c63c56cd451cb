"""服务编排层"""

from .simulator import LinkStateSimulator
from .shell import InteractiveShell

__all__ = ["LinkStateSimulator", "InteractiveShell"]
