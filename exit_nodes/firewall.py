import pulumi_gcp as gcp

NODE_TAG = "tailscale-exit-node"
WIREGUARD_PORT = "41641"


def _allow_rule(name, project, network, protocol, port, source_range):
    return gcp.compute.Firewall(
        name,
        name=name,
        project=project,
        network=network.id,
        direction="INGRESS",
        allows=[gcp.compute.FirewallAllowArgs(protocol=protocol, ports=[port])],
        source_ranges=[source_range],
        target_tags=[NODE_TAG],
    )


def create_firewall_rules(project, network, ssh_enabled=True):
    rules = {}
    if ssh_enabled:
        rules["ssh"] = _allow_rule(
            "tailscale-allow-ssh", project, network, "tcp", "22", "0.0.0.0/0"
        )
    # Direct WireGuard connections, otherwise peers fall back to DERP relays.
    # GCP does not accept v4 and v6 sources in the same rule.
    rules["wireguard"] = _allow_rule(
        "tailscale-allow-wireguard", project, network, "udp", WIREGUARD_PORT, "0.0.0.0/0"
    )
    rules["wireguard_ipv6"] = _allow_rule(
        "tailscale-allow-wireguard-ipv6", project, network, "udp", WIREGUARD_PORT, "::/0"
    )
    return rules
