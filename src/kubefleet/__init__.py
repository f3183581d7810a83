"""KubeFleet: worker-node inventory synchronized with a live Kubernetes cluster."""

__version__ = "0.1.0"
