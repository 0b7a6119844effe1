"""Migration of legacy KubernetesService records into the clusters model."""

__version__ = "0.1.0"
