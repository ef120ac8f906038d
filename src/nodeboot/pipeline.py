"""
Pipeline: load specs from disk, render the bootstrap script, write it out.
Specs are JSON when the file ends in .json and YAML otherwise.
"""

import json
from pathlib import Path
from typing import Any, Optional

import yaml

from ._util import debug
from .bootstrap import BootstrapScript, ConfigBuilder
from .schema import ClusterSpec, InstanceGroupSpec, NodeAgentConfig


def _load_document(path: Path) -> Any:
    text = Path(path).read_text()
    if Path(path).suffix == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


def load_cluster(path: Path) -> ClusterSpec:
    """Load and validate a cluster spec."""
    return ClusterSpec.model_validate(_load_document(path) or {})


def load_instance_group(path: Path) -> InstanceGroupSpec:
    """Load and validate an instance group spec."""
    return InstanceGroupSpec.model_validate(_load_document(path) or {})


def load_node_config(path: Path) -> NodeAgentConfig:
    """Load a node agent config document without interpreting it."""
    data = _load_document(path)
    return {} if data is None else data


def file_config_builder(path: Optional[Path]) -> ConfigBuilder:
    """Config builder that returns the document at *path* (or {}) for every group."""
    def build(group: InstanceGroupSpec) -> NodeAgentConfig:
        if path is None:
            return {}
        debug("pipeline", f"loading node config for {group.name or '<unnamed>'} from {path}")
        return load_node_config(path)

    return build


def run_render(
    *,
    cluster_path: Path,
    instance_group_path: Path,
    nodeup_url: str,
    nodeup_hash: str,
    node_config_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
) -> str:
    """
    Load the specs, render the script and optionally write it to output_path
    (parent directories are created). Returns the script text.
    """
    cluster = load_cluster(cluster_path)
    group = load_instance_group(instance_group_path)
    bootstrap = BootstrapScript(
        node_up_source=nodeup_url,
        node_up_source_hash=nodeup_hash,
        config_builder=file_config_builder(node_config_path),
    )
    text = bootstrap.render_node_up_script(group, cluster).render()

    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text)
        debug("pipeline", f"wrote {len(text)} bytes to {output_path}")
    return text
