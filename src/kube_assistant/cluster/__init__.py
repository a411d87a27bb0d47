from .client import KubeApis, describe_api_exception, translate_api_errors
from .reader import ClusterReader
from .writer import ClusterWriter

__all__ = [
    "KubeApis",
    "ClusterReader",
    "ClusterWriter",
    "describe_api_exception",
    "translate_api_errors",
]
