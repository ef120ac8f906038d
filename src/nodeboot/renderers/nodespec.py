"""
Node spec renderer: the slices of the cluster and instance-group specs that
the node agent reads from disk at boot.

Component settings are opaque mappings; only their selection depends on the
instance group's role.
"""

from typing import Any, Dict

from ..roles import is_control_plane
from ..schema import ClusterSpec, InstanceGroupSpec, Role

# (document key, ClusterSpec attribute)
_ALL_ROLES = (
    ("cloudConfig", "cloud_config"),
    ("docker", "docker"),
    ("kubelet", "kubelet"),
    ("kubeProxy", "kube_proxy"),
)
_CONTROL_PLANE_ONLY = (
    ("kubeAPIServer", "kube_api_server"),
    ("kubeControllerManager", "kube_controller_manager"),
    ("kubeScheduler", "kube_scheduler"),
    ("masterKubelet", "master_kubelet"),
)


def cluster_node_spec(cluster: ClusterSpec, role: Role) -> Dict[str, Any]:
    """Cluster component settings visible to a node with *role*."""
    fields = _ALL_ROLES
    if is_control_plane(role):
        fields = fields + _CONTROL_PLANE_ONLY
    spec: Dict[str, Any] = {}
    for key, attr in fields:
        value = getattr(cluster, attr)
        if value is not None:
            spec[key] = value
    return spec


def instance_group_node_spec(group: InstanceGroupSpec) -> Dict[str, Any]:
    spec: Dict[str, Any] = {}
    if group.kubelet is not None:
        spec["kubelet"] = group.kubelet
    if group.node_labels:
        spec["nodeLabels"] = dict(group.node_labels)
    if group.taints:
        spec["taints"] = list(group.taints)
    return spec
