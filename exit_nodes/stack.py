"""Wires the whole resource graph together.

network -> subnetworks -> service account -> schedules -> instances, plus the
firewall rules on the shared network.
"""

from dataclasses import dataclass
from typing import Dict

import pulumi
import pulumi_gcp as gcp

from exit_nodes import firewall, identity, instances, network, schedule
from exit_nodes.settings import StackSettings


@dataclass
class ExitNodeStack:
    network: gcp.compute.Network
    subnetworks: Dict[str, gcp.compute.Subnetwork]
    service_account: gcp.serviceaccount.Account
    schedules: Dict[str, gcp.compute.ResourcePolicy]
    instances: Dict[str, gcp.compute.Instance]
    firewall_rules: Dict[str, gcp.compute.Firewall]


def build_stack(settings: StackSettings) -> ExitNodeStack:
    net = network.create_network(settings.project)
    subs = network.create_subnetworks(settings.project, net, settings.vm_configs)
    account = identity.create_service_account(settings.project)
    policies = schedule.create_schedules(
        settings.project, settings.vm_configs, settings.schedule
    )
    nodes = instances.create_instances(settings, subs, account, policies)
    rules = firewall.create_firewall_rules(
        settings.project, net, ssh_enabled=settings.ssh_enabled
    )
    return ExitNodeStack(
        network=net,
        subnetworks=subs,
        service_account=account,
        schedules=policies,
        instances=nodes,
        firewall_rules=rules,
    )


def export_outputs(stack: ExitNodeStack) -> None:
    pulumi.export("network_name", stack.network.name)
    pulumi.export("service_account_email", stack.service_account.email)
    pulumi.export(
        "exit_nodes",
        {
            site: {
                "name": node.name,
                "zone": node.zone,
                "external_ip": instances.external_ip(node),
                "subnetwork_cidr": stack.subnetworks[site].ip_cidr_range,
            }
            for site, node in stack.instances.items()
        },
    )
