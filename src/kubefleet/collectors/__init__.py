from .cluster_reader import ClusterStateReader

__all__ = ["ClusterStateReader"]
