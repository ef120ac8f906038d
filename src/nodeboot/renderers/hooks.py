"""
Hook compiler: merge cluster and instance-group hooks, filter by role, and
turn each surviving hook into a systemd unit install directive.
"""

import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .._util import debug
from ..errors import MalformedHook
from ..roles import applies
from ..schema import ExecContainerAction, HookSpec, Role

CLUSTER_SCOPE = "cluster"
GROUP_SCOPE = "group"

_SCOPE_LABELS = {CLUSTER_SCOPE: "cluster hook", GROUP_SCOPE: "instance group hook"}

_UNIT_SUFFIXES = (".service", ".timer", ".target", ".path", ".socket", ".mount")

# Mounts that let a hook container act on the host
_DOCKER_RUN = [
    "/usr/bin/docker", "run",
    "-v", "/:/rootfs/",
    "-v", "/var/run/dbus:/var/run/dbus",
    "-v", "/run/systemd:/run/systemd",
    "--net=host",
    "--privileged",
]

_NEEDS_QUOTING_RE = re.compile(r"[\s\"'\\]")

# systemd unit name characters, no backslash escapes; names are bare shell words
_UNIT_NAME_RE = re.compile(r"^[A-Za-z0-9:_.@-]+$")


@dataclass(frozen=True)
class InstallDirective:
    """A systemd unit the bootstrap script writes and (unless disabled) starts."""

    unit_name: str
    content: str
    enabled: bool = True
    scope: str = CLUSTER_SCOPE
    after_agent: bool = False  # started once nodeup has run


def escape_command(args: Sequence[str]) -> str:
    """Join *args* into a systemd Exec* command line.

    Argument order is kept. Specifier and variable characters are doubled;
    arguments with whitespace, quotes or backslashes are double-quoted, and
    newlines inside them become the C escape \\n.
    """
    out: List[str] = []
    for arg in args:
        arg = arg.replace("%", "%%").replace("$", "$$")
        if not arg or _NEEDS_QUOTING_RE.search(arg):
            arg = '"' + arg.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n") + '"'
        out.append(arg)
    return " ".join(out)


def _render_unit(sections: List[Tuple[str, List[str]]]) -> str:
    blocks = ["\n".join([f"[{name}]"] + lines) + "\n" for name, lines in sections]
    return "\n".join(blocks)


def _hook_label(hook: HookSpec, scope: str, index: int) -> str:
    if hook.name:
        return hook.name
    return f"{_SCOPE_LABELS[scope]} #{index}"


def unit_name_for(hook: HookSpec, scope: str, index: int) -> str:
    name = hook.name or f"{scope}-hook-{index}"
    if not name.endswith(_UNIT_SUFFIXES):
        name += ".service"
    return name


def validate_hook(hook: HookSpec, scope: str, index: int) -> None:
    """Raise MalformedHook unless the hook has a usable unit name and exactly one action."""
    label = _hook_label(hook, scope, index)
    if not _UNIT_NAME_RE.match(unit_name_for(hook, scope, index)):
        raise MalformedHook(label, "hook name is not a valid systemd unit name")
    has_manifest = bool(hook.manifest)
    has_container = hook.exec_container is not None
    if not has_manifest and not has_container:
        raise MalformedHook(label, "hook defines neither a manifest nor an exec container")
    if has_manifest and has_container:
        raise MalformedHook(label, "hook defines both a manifest and an exec container")
    if has_container and not hook.exec_container.image:
        raise MalformedHook(label, "exec container has no image")
    if hook.use_raw_manifest and (hook.before or hook.requires):
        raise MalformedHook(label, "before/requires cannot be combined with a raw manifest")


def _docker_service(action: ExecContainerAction) -> List[str]:
    args = list(_DOCKER_RUN)
    for key in sorted(action.environment):
        args += ["--env", f"{key}={action.environment[key]}"]
    args.append(action.image)
    args += action.command
    return [
        "ExecStartPre=" + escape_command(["/usr/bin/docker", "pull", action.image]),
        "ExecStart=" + escape_command(args),
        "Type=oneshot",
    ]


def build_unit(hook: HookSpec, unit_name: str) -> str:
    """Render the systemd unit file for a validated hook."""
    if hook.manifest and hook.use_raw_manifest:
        return hook.manifest if hook.manifest.endswith("\n") else hook.manifest + "\n"

    unit = [f"Description=Hook {unit_name}"]
    if hook.exec_container is not None:
        unit += ["Requires=docker.service", "After=docker.service"]
    unit += [f"Requires={x}" for x in hook.requires]
    unit += [f"Before={x}" for x in hook.before]

    if hook.exec_container is not None:
        service = _docker_service(hook.exec_container)
    else:
        service = [hook.manifest.rstrip("\n")]

    return _render_unit([
        ("Unit", unit),
        ("Service", service),
        ("Install", ["WantedBy=multi-user.target"]),
    ])


def _compile_scope(hooks: Sequence[HookSpec], scope: str, target: Role) -> List[InstallDirective]:
    directives: List[InstallDirective] = []
    for index, hook in enumerate(hooks):
        unit_name = unit_name_for(hook, scope, index)
        if not applies(hook.roles, target):
            debug("hooks", f"skipping {unit_name}: roles {[r.value for r in hook.roles]} exclude {target.value}")
            continue
        directives.append(InstallDirective(
            unit_name=unit_name,
            content=build_unit(hook, unit_name),
            enabled=not hook.disabled,
            scope=scope,
            after_agent=hook.exec_container is not None,
        ))
        debug("hooks", f"compiled {scope} hook {unit_name}")
    return directives


def compile_hooks(
    cluster_hooks: Sequence[HookSpec],
    group_hooks: Sequence[HookSpec],
    target: Role,
) -> List[InstallDirective]:
    """
    Compile the hooks that apply to *target*.

    Cluster-scoped directives come first, then instance-group directives,
    each in declaration order. Every hook is validated before filtering so
    malformed input always fails, whatever the target role. Two hooks that
    resolve to the same unit name are rejected.

    Container hooks are marked to start after nodeup, which installs the
    container runtime they require.
    """
    seen = {}
    for scope, hooks in ((CLUSTER_SCOPE, cluster_hooks), (GROUP_SCOPE, group_hooks)):
        for index, hook in enumerate(hooks):
            validate_hook(hook, scope, index)
            unit_name = unit_name_for(hook, scope, index)
            label = _hook_label(hook, scope, index)
            if unit_name in seen:
                raise MalformedHook(label, f"unit {unit_name} is already defined by {seen[unit_name]}")
            seen[unit_name] = f"{_SCOPE_LABELS[scope]} #{index}"

    return (
        _compile_scope(cluster_hooks, CLUSTER_SCOPE, target)
        + _compile_scope(group_hooks, GROUP_SCOPE, target)
    )
