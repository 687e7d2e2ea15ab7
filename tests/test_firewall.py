import pulumi

from exit_nodes.stack import build_stack

from conftest import make_settings


def rule_values(rule):
    return pulumi.Output.all(
        rule.name,
        rule.allows.apply(lambda allows: [(a.protocol, a.ports) for a in allows]),
        rule.source_ranges,
        rule.target_tags,
        rule.direction,
    )


@pulumi.runtime.test
def test_ssh_rule(mocks, settings):
    stack = build_stack(settings)

    def check(args):
        name, allows, sources, targets, direction = args
        assert name == "tailscale-allow-ssh"
        assert allows == [("tcp", ["22"])]
        assert sources == ["0.0.0.0/0"]
        assert targets == ["tailscale-exit-node"]
        assert direction == "INGRESS"

    return rule_values(stack.firewall_rules["ssh"]).apply(check)


@pulumi.runtime.test
def test_wireguard_rules(mocks, settings):
    stack = build_stack(settings)

    def check(args):
        (v4_name, v4_allows, v4_sources, _, _), (v6_name, v6_allows, v6_sources, _, _) = args
        assert v4_name == "tailscale-allow-wireguard"
        assert v4_allows == [("udp", ["41641"])]
        assert v4_sources == ["0.0.0.0/0"]
        assert v6_name == "tailscale-allow-wireguard-ipv6"
        assert v6_allows == [("udp", ["41641"])]
        assert v6_sources == ["::/0"]

    return pulumi.Output.all(
        rule_values(stack.firewall_rules["wireguard"]),
        rule_values(stack.firewall_rules["wireguard_ipv6"]),
    ).apply(check)


@pulumi.runtime.test
def test_no_ssh_rule_when_ssh_disabled(mocks):
    stack = build_stack(make_settings(ssh_enabled=False))
    assert set(stack.firewall_rules) == {"wireguard", "wireguard_ipv6"}
