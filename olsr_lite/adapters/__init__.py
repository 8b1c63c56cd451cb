"""外部接口适配层"""

from .topology_io import (
    RouteExporter,
    RouteExportError,
    TopologyImporter,
    TopologyImportError,
)

__all__ = ["RouteExporter", "RouteExportError", "TopologyImporter", "TopologyImportError"]
