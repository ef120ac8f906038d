"""Role applicability shared by hook compilation and node spec rendering."""

from typing import Iterable

from .schema import Role


def applies(roles: Iterable[Role], target: Role) -> bool:
    """True if something scoped to *roles* applies to a node with role *target*.

    An empty scope applies to every role.
    """
    roles = list(roles)
    if not roles:
        return True
    return target in roles


def is_control_plane(role: Role) -> bool:
    return role == Role.CONTROL_PLANE
