"""Error types raised while building a bootstrap script."""


class NodeBootError(RuntimeError):
    """Base class for bootstrap rendering failures."""


class ConfigBuildError(NodeBootError):
    """The node agent config builder failed for an instance group."""

    def __init__(self, group: str, cause: BaseException):
        self.group = group
        self.cause = cause
        label = group or "<unnamed>"
        super().__init__(f"building node config for instance group {label!r} failed: {cause}")


class MalformedHook(NodeBootError):
    """A hook sets neither (or both) of a manifest and a container action."""

    def __init__(self, hook: str, reason: str):
        self.hook = hook
        self.reason = reason
        super().__init__(f"{hook}: {reason}")


class TemplateError(NodeBootError):
    """The bootstrap template could not be materialized."""
