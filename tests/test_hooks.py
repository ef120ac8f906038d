"""Tests for the hook compiler."""

import pytest

from nodeboot.errors import MalformedHook
from nodeboot.renderers.hooks import (
    CLUSTER_SCOPE,
    GROUP_SCOPE,
    build_unit,
    compile_hooks,
    escape_command,
    unit_name_for,
)
from nodeboot.schema import ExecContainerAction, HookSpec, Role


def _manifest_hook(name, roles=None, **kwargs) -> HookSpec:
    return HookSpec(name=name, manifest="Type=oneshot\nExecStart=/bin/true", roles=roles or [], **kwargs)


# ---------------------------------------------------------------------------
# Merge order and role filtering
# ---------------------------------------------------------------------------

def test_cluster_hooks_precede_group_hooks_in_declaration_order():
    cluster = [_manifest_hook("c1"), _manifest_hook("c2")]
    group = [_manifest_hook("g1"), _manifest_hook("g2")]
    directives = compile_hooks(cluster, group, Role.WORKER)
    assert [d.unit_name for d in directives] == [
        "c1.service", "c2.service", "g1.service", "g2.service",
    ]
    assert [d.scope for d in directives] == [CLUSTER_SCOPE] * 2 + [GROUP_SCOPE] * 2


def test_role_filter_applies_to_both_scopes():
    cluster = [_manifest_hook("c-master", [Role.CONTROL_PLANE]), _manifest_hook("c-all")]
    group = [_manifest_hook("g-node", [Role.WORKER]), _manifest_hook("g-master", [Role.CONTROL_PLANE])]
    names = [d.unit_name for d in compile_hooks(cluster, group, Role.CONTROL_PLANE)]
    assert names == ["c-master.service", "c-all.service", "g-master.service"]
    names = [d.unit_name for d in compile_hooks(cluster, group, Role.WORKER)]
    assert names == ["c-all.service", "g-node.service"]


def test_no_hooks():
    assert compile_hooks([], [], Role.WORKER) == []


# ---------------------------------------------------------------------------
# Unit names
# ---------------------------------------------------------------------------

def test_unit_name_suffix():
    assert unit_name_for(HookSpec(name="foo"), CLUSTER_SCOPE, 0) == "foo.service"
    assert unit_name_for(HookSpec(name="foo.service"), CLUSTER_SCOPE, 0) == "foo.service"
    assert unit_name_for(HookSpec(name="foo.timer"), CLUSTER_SCOPE, 0) == "foo.timer"


def test_unnamed_hooks_use_scope_and_declaration_index():
    cluster = [_manifest_hook(None, [Role.CONTROL_PLANE]), _manifest_hook(None)]
    group = [_manifest_hook(None)]
    names = [d.unit_name for d in compile_hooks(cluster, group, Role.WORKER)]
    assert names == ["cluster-hook-1.service", "group-hook-0.service"]


# ---------------------------------------------------------------------------
# Unit content
# ---------------------------------------------------------------------------

def test_manifest_unit_has_before_lines_in_order():
    hook = HookSpec(
        name="disable-update-engine.service",
        before=["update-engine.service", "kubelet.service"],
        manifest="Type=oneshot\nExecStart=/usr/bin/systemctl stop update-engine.service",
    )
    assert build_unit(hook, "disable-update-engine.service") == (
        "[Unit]\n"
        "Description=Hook disable-update-engine.service\n"
        "Before=update-engine.service\n"
        "Before=kubelet.service\n"
        "\n"
        "[Service]\n"
        "Type=oneshot\n"
        "ExecStart=/usr/bin/systemctl stop update-engine.service\n"
        "\n"
        "[Install]\n"
        "WantedBy=multi-user.target\n"
    )


def test_requires_lines_precede_before_lines():
    hook = _manifest_hook("x", requires=["network-online.target"], before=["kubelet.service"])
    unit = build_unit(hook, "x.service")
    assert unit.index("Requires=network-online.target") < unit.index("Before=kubelet.service")


def test_contradictory_before_is_passed_through():
    a = _manifest_hook("a", before=["b.service"])
    b = _manifest_hook("b", before=["a.service"])
    directives = compile_hooks([a, b], [], Role.WORKER)
    assert "Before=b.service" in directives[0].content
    assert "Before=a.service" in directives[1].content


def test_raw_manifest_is_whole_unit():
    raw = "[Unit]\nDescription=mine\n[Service]\nExecStart=/bin/true"
    hook = HookSpec(name="raw", manifest=raw, use_raw_manifest=True)
    assert build_unit(hook, "raw.service") == raw + "\n"


def test_container_unit():
    hook = HookSpec(exec_container=ExecContainerAction(
        image="busybox",
        command=["sh", "-c", "echo hello world"],
        environment={"B": "2", "A": "1"},
    ))
    unit = build_unit(hook, "cluster-hook-0.service")
    assert "Requires=docker.service\nAfter=docker.service\n" in unit
    assert "ExecStartPre=/usr/bin/docker pull busybox\n" in unit
    assert (
        "ExecStart=/usr/bin/docker run -v /:/rootfs/ -v /var/run/dbus:/var/run/dbus "
        "-v /run/systemd:/run/systemd --net=host --privileged "
        "--env A=1 --env B=2 busybox sh -c \"echo hello world\"\n"
    ) in unit
    assert "Type=oneshot\n" in unit


def test_disabled_hook_is_compiled_but_not_enabled():
    directives = compile_hooks([_manifest_hook("off", disabled=True)], [], Role.WORKER)
    assert len(directives) == 1
    assert directives[0].enabled is False


# ---------------------------------------------------------------------------
# escape_command
# ---------------------------------------------------------------------------

def test_escape_command_plain_args_unchanged():
    assert escape_command(["/bin/echo", "a", "b"]) == "/bin/echo a b"


def test_escape_command_quotes_only_when_needed():
    assert escape_command(["a b", 'say "hi"', "back\\slash", ""]) == (
        '"a b" "say \\"hi\\"" "back\\\\slash" ""'
    )


def test_escape_command_doubles_specifiers():
    assert escape_command(["echo", "100%", "$HOME"]) == "echo 100%% $$HOME"


# ---------------------------------------------------------------------------
# Malformed hooks
# ---------------------------------------------------------------------------

def test_hook_without_action_is_rejected_by_name():
    with pytest.raises(MalformedHook) as exc:
        compile_hooks([], [HookSpec(name="empty.service")], Role.WORKER)
    assert exc.value.hook == "empty.service"
    assert "neither" in str(exc.value)


def test_unnamed_hook_without_action_is_rejected_by_index():
    with pytest.raises(MalformedHook) as exc:
        compile_hooks([_manifest_hook("ok"), HookSpec()], [], Role.WORKER)
    assert exc.value.hook == "cluster hook #1"


def test_hook_with_both_actions_is_rejected():
    hook = HookSpec(name="both", manifest="Type=oneshot", exec_container=ExecContainerAction(image="busybox"))
    with pytest.raises(MalformedHook, match="both"):
        compile_hooks([], [hook], Role.WORKER)


def test_malformed_hook_for_other_role_still_fails():
    hook = HookSpec(name="bad", roles=[Role.CONTROL_PLANE])
    with pytest.raises(MalformedHook):
        compile_hooks([], [hook], Role.WORKER)


def test_container_without_image_is_rejected():
    hook = HookSpec(exec_container=ExecContainerAction(image=""))
    with pytest.raises(MalformedHook) as exc:
        compile_hooks([], [hook], Role.WORKER)
    assert exc.value.hook == "instance group hook #0"


@pytest.mark.parametrize(
    "name",
    ["my hook", "../../../etc/profile.d/x.sh", "x;reboot", "$(id).service", "a\\x2db.service"],
)
def test_hook_name_outside_unit_alphabet_is_rejected(name):
    with pytest.raises(MalformedHook, match="valid systemd unit name") as exc:
        compile_hooks([_manifest_hook(name)], [], Role.WORKER)
    assert exc.value.hook == name


def test_unit_name_alphabet_accepts_templates_and_dashes():
    hook = _manifest_hook("getty@tty1:x_y.service")
    assert compile_hooks([hook], [], Role.WORKER)[0].unit_name == "getty@tty1:x_y.service"


def test_duplicate_unit_across_scopes_is_rejected():
    with pytest.raises(MalformedHook, match="already defined by cluster hook #0") as exc:
        compile_hooks([_manifest_hook("dup")], [_manifest_hook("dup.service")], Role.WORKER)
    assert exc.value.hook == "dup.service"


def test_duplicate_unit_is_rejected_even_when_roles_do_not_overlap():
    cluster = [_manifest_hook("dup", [Role.CONTROL_PLANE])]
    group = [_manifest_hook("dup", [Role.WORKER])]
    with pytest.raises(MalformedHook):
        compile_hooks(cluster, group, Role.WORKER)


def test_duplicate_unit_within_scope_is_rejected():
    with pytest.raises(MalformedHook) as exc:
        compile_hooks([], [_manifest_hook("a"), _manifest_hook("a")], Role.WORKER)
    assert "instance group hook #0" in str(exc.value)


def test_raw_manifest_with_ordering_is_rejected():
    hook = HookSpec(name="raw", manifest="[Service]\nExecStart=/bin/true", use_raw_manifest=True, before=["kubelet.service"])
    with pytest.raises(MalformedHook, match="raw manifest"):
        compile_hooks([hook], [], Role.WORKER)


def test_escape_command_newline_stays_on_one_line():
    assert escape_command(["sh", "-c", "echo a\necho b"]) == 'sh -c "echo a\\necho b"'


def test_container_hooks_start_after_agent():
    container = HookSpec(name="ctr", exec_container=ExecContainerAction(image="busybox"))
    directives = compile_hooks([container], [_manifest_hook("unit")], Role.WORKER)
    assert [(d.unit_name, d.after_agent) for d in directives] == [
        ("ctr.service", True),
        ("unit.service", False),
    ]
