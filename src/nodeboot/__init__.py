"""nodeboot: render first-boot bootstrap scripts for Kubernetes instance groups."""

__version__ = "0.1.0"
