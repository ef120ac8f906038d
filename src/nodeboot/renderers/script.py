"""
Script composer: assemble the proxy block, hook units and node agent
bootstrap into the first-boot shell script.

``compose`` only captures its inputs; the Jinja2 template is resolved and
every document serialized when ``RenderedScript.render`` is called.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import jinja2
import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .._util import to_yaml
from ..errors import TemplateError
from .hooks import InstallDirective

TEMPLATE_NAME = "nodeup.sh.j2"
TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

# Heredoc terminators used by the template
HOOK_EOF = "__EOF_HOOK"
CLUSTER_SPEC_EOF = "__EOF_CLUSTER_SPEC"
IG_SPEC_EOF = "__EOF_IG_SPEC"
KUBE_ENV_EOF = "__EOF_KUBE_ENV"


def make_env() -> Environment:
    """Jinja2 environment for shell output: no autoescaping, exact whitespace."""
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=False,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
    )


@dataclass(frozen=True)
class AgentBootstrapParams:
    """Where to fetch the node agent and what to hand it."""

    source_url: str
    source_hash: str
    config: Any = None  # opaque node agent config
    cluster_spec: Optional[Dict[str, Any]] = None
    ig_spec: Optional[Dict[str, Any]] = None


def _heredoc_body(text: str, terminator: str, label: str) -> str:
    text = text.rstrip("\n")
    if terminator in text.split("\n"):
        raise TemplateError(f"{label} contains the heredoc terminator line {terminator!r}")
    return text


def _document(value: Any, terminator: str, label: str) -> str:
    try:
        text = to_yaml(value)
    except (yaml.YAMLError, UnicodeDecodeError) as exc:
        raise TemplateError(f"cannot serialize {label}: {exc}") from exc
    return _heredoc_body(text, terminator, label)


@dataclass(frozen=True)
class RenderedScript:
    """A bootstrap script that is produced on demand by ``render``."""

    env: Environment
    proxy_env: str
    directives: Tuple[InstallDirective, ...]
    agent: AgentBootstrapParams

    def _context(self) -> Dict[str, Any]:
        agent = self.agent
        if not agent.source_url:
            raise TemplateError("nodeup source URL is required")
        if not agent.source_hash:
            raise TemplateError("nodeup source hash is required")
        if agent.config is None:
            raise TemplateError("node config is required")

        hooks: List[Dict[str, Any]] = [
            {
                "unit_name": d.unit_name,
                "unit": _heredoc_body(d.content, HOOK_EOF, f"hook {d.unit_name}"),
                "enabled": d.enabled,
                "after_agent": d.after_agent,
            }
            for d in self.directives
        ]
        context: Dict[str, Any] = {
            "proxy_env": self.proxy_env.rstrip("\n"),
            "source_url": agent.source_url,
            "source_hash": agent.source_hash,
            "hooks": hooks,
            "cluster_spec": "",
            "ig_spec": "",
            "node_config": _document(agent.config, KUBE_ENV_EOF, "node config"),
        }
        if agent.cluster_spec is not None:
            context["cluster_spec"] = _document(agent.cluster_spec, CLUSTER_SPEC_EOF, "cluster spec")
        if agent.ig_spec is not None:
            context["ig_spec"] = _document(agent.ig_spec, IG_SPEC_EOF, "instance group spec")
        return context

    def render(self) -> str:
        """Return the script text, or raise TemplateError. Never returns partial output."""
        context = self._context()
        try:
            return self.env.get_template(TEMPLATE_NAME).render(**context)
        except jinja2.TemplateError as exc:
            raise TemplateError(f"rendering bootstrap script failed: {exc}") from exc

    def as_bytes(self) -> bytes:
        return self.render().encode("utf-8")


def compose(
    proxy_fragment: str,
    directives: Sequence[InstallDirective],
    agent: AgentBootstrapParams,
    env: Optional[Environment] = None,
) -> RenderedScript:
    """Capture everything needed to render the script; always succeeds."""
    return RenderedScript(
        env=env if env is not None else make_env(),
        proxy_env=proxy_fragment or "",
        directives=tuple(directives),
        agent=agent,
    )
