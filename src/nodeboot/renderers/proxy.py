"""Proxy environment renderer: egress proxy spec -> shell export statements."""

from typing import List, Optional, Tuple

from ..schema import EgressProxySpec


def proxy_url(spec: EgressProxySpec) -> str:
    host = spec.http_proxy.host
    port = spec.http_proxy.port
    if port:
        return f"http://{host}:{port}"
    return f"http://{host}"


def proxy_variables(spec: Optional[EgressProxySpec]) -> List[Tuple[str, str]]:
    """Return (name, value) pairs for every proxy-affecting variable, in export order."""
    if spec is None or not spec.http_proxy.host:
        return []
    url = proxy_url(spec)
    variables = [("http_proxy", url), ("https_proxy", url)]
    if spec.exclude_list:
        excludes = ",".join(spec.exclude_list)
        variables.append(("no_proxy", excludes))
        variables.append(("NO_PROXY", excludes))
    return variables


def render_proxy_env(spec: Optional[EgressProxySpec]) -> str:
    """
    Render the proxy block of the bootstrap script.

    Exports the variables for the script itself, then persists them to
    /etc/environment and to systemd's DefaultEnvironment so that hooks and
    the kubelet started later see the same proxy. Returns "" when no proxy
    is configured.
    """
    variables = proxy_variables(spec)
    if not variables:
        return ""

    lines = [f"export {name}={value}" for name, value in variables]
    for name, value in variables:
        lines.append(f'echo "export {name}={value}" >> /etc/environment')
    default_env = " ".join(f'\\"{name}={value}\\"' for name, value in variables)
    lines.append(f"echo DefaultEnvironment={default_env} >> /etc/systemd/system.conf")
    lines.append("systemctl daemon-reexec")
    return "\n".join(lines) + "\n"
