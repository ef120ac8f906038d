"""
Bootstrap input schema.

Typed contract between the spec loaders and the renderers. Cluster and
instance-group specs carry many settings that only the node agent
understands; those are kept as opaque mappings and passed through untouched.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator


# --- Roles ---


class Role(str, Enum):
    """Functional category of the nodes in an instance group."""

    CONTROL_PLANE = "Master"
    WORKER = "Node"
    BASTION = "Bastion"


# --- Egress proxy ---


class HTTPProxy(BaseModel):
    host: str = ""
    port: int = 0  # 0 means "no explicit port"


class EgressProxySpec(BaseModel):
    """HTTP egress proxy used by every node of the cluster."""

    http_proxy: HTTPProxy = Field(default_factory=HTTPProxy)
    # Hostnames/CIDRs that bypass the proxy, in caller order
    exclude_list: List[str] = Field(default_factory=list)

    @field_validator("exclude_list", mode="before")
    @classmethod
    def _accept_joined_string(cls, value: Union[str, List[str], None]):
        # A pre-joined "a,b,c" string is kept verbatim as a single entry.
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value else []
        return value

    @field_validator("exclude_list")
    @classmethod
    def _no_empty_entries(cls, value: List[str]) -> List[str]:
        if any(entry == "" for entry in value):
            raise ValueError("exclude_list entries must be non-empty")
        return value


# --- Hooks ---


class ExecContainerAction(BaseModel):
    """Run a container image once on the node."""

    image: str
    command: List[str] = Field(default_factory=list)
    environment: Dict[str, str] = Field(default_factory=dict)


class HookSpec(BaseModel):
    """
    Administrator-supplied setup unit.

    Exactly one of ``manifest`` or ``exec_container`` is expected; the hook
    compiler rejects anything else so the offending hook can be named.
    """

    name: Optional[str] = None
    roles: List[Role] = Field(default_factory=list)  # empty = every role
    before: List[str] = Field(default_factory=list)  # units this hook runs before
    requires: List[str] = Field(default_factory=list)
    manifest: Optional[str] = None  # systemd [Service] body
    exec_container: Optional[ExecContainerAction] = None
    disabled: bool = False  # install the unit but do not enable/start it
    use_raw_manifest: bool = False  # manifest is the whole unit file; excludes before/requires


# --- Cluster / instance group ---


class ClusterSpec(BaseModel):
    """Cluster-wide settings relevant to node bootstrap."""

    name: str = ""
    cloud_provider: str = ""
    kubernetes_version: str = ""
    egress_proxy: Optional[EgressProxySpec] = None
    hooks: List[HookSpec] = Field(default_factory=list)

    # Component settings consumed by the node agent (opaque here)
    cloud_config: Optional[Dict[str, Any]] = None
    docker: Optional[Dict[str, Any]] = None
    kubelet: Optional[Dict[str, Any]] = None
    master_kubelet: Optional[Dict[str, Any]] = None
    kube_proxy: Optional[Dict[str, Any]] = None
    kube_api_server: Optional[Dict[str, Any]] = None
    kube_controller_manager: Optional[Dict[str, Any]] = None
    kube_scheduler: Optional[Dict[str, Any]] = None


class InstanceGroupSpec(BaseModel):
    """A homogeneous pool of nodes sharing a role."""

    name: str = ""
    role: Role
    hooks: List[HookSpec] = Field(default_factory=list)
    kubelet: Optional[Dict[str, Any]] = None
    node_labels: Dict[str, str] = Field(default_factory=dict)
    taints: List[str] = Field(default_factory=list)


# Whatever the config builder returns; serialized, never inspected.
NodeAgentConfig = Any
