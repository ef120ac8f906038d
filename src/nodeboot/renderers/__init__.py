"""
Renderers turn specs into fragments of the bootstrap script; the script
composer assembles them with a Jinja2 template.
"""

from .hooks import InstallDirective, compile_hooks
from .nodespec import cluster_node_spec, instance_group_node_spec
from .proxy import render_proxy_env
from .script import AgentBootstrapParams, RenderedScript, compose, make_env

__all__ = [
    "AgentBootstrapParams",
    "InstallDirective",
    "RenderedScript",
    "cluster_node_spec",
    "compile_hooks",
    "compose",
    "instance_group_node_spec",
    "make_env",
    "render_proxy_env",
]
