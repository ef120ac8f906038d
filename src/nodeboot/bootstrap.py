"""
Bootstrap orchestrator: the public entry point for rendering a node's
first-boot script.
"""

from typing import Callable

from ._util import debug
from .errors import ConfigBuildError
from .renderers import (
    AgentBootstrapParams,
    RenderedScript,
    cluster_node_spec,
    compile_hooks,
    compose,
    instance_group_node_spec,
    render_proxy_env,
)
from .schema import ClusterSpec, InstanceGroupSpec, NodeAgentConfig

ConfigBuilder = Callable[[InstanceGroupSpec], NodeAgentConfig]


class BootstrapScript:
    """
    Renders the script that downloads, verifies and starts nodeup.

    ``config_builder`` produces the node agent configuration for an instance
    group. It is called once per render and its result is embedded verbatim.
    """

    def __init__(
        self,
        node_up_source: str,
        node_up_source_hash: str,
        config_builder: ConfigBuilder,
    ):
        self.node_up_source = node_up_source
        self.node_up_source_hash = node_up_source_hash
        self.config_builder = config_builder

    def render_node_up_script(
        self, group: InstanceGroupSpec, cluster: ClusterSpec
    ) -> RenderedScript:
        """
        Build the script resource for *group*. Call ``render()`` on the
        result to get the text.

        Raises ConfigBuildError if the config builder fails and MalformedHook
        for invalid hooks; nothing is rendered in either case.
        """
        try:
            config = self.config_builder(group)
        except Exception as exc:
            raise ConfigBuildError(group.name, exc) from exc

        role = group.role
        debug("bootstrap", f"rendering {group.name or '<unnamed>'} as {role.value}")

        directives = compile_hooks(cluster.hooks, group.hooks, role)
        proxy_env = render_proxy_env(cluster.egress_proxy)
        agent = AgentBootstrapParams(
            source_url=self.node_up_source,
            source_hash=self.node_up_source_hash,
            config=config,
            cluster_spec=cluster_node_spec(cluster, role),
            ig_spec=instance_group_node_spec(group),
        )
        return compose(proxy_env, directives, agent)
