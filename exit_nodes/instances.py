import pulumi
import pulumi_gcp as gcp

from exit_nodes.firewall import NODE_TAG
from exit_nodes.startup import startup_script


def hostname_for(site):
    return f"exit-node-{site}"


def create_instances(settings, subnetworks, service_account, schedules):
    """One exit node per site, wired to that site's subnetwork and schedule."""
    instances = {}
    for site, vm in settings.vm_configs.items():
        name = f"tailscale-exit-node-{site}"
        pulumi.log.info(f"declaring instance {name} ({vm.machine_type}) in {vm.zone}")

        policy = schedules.get(site)
        instances[site] = gcp.compute.Instance(
            name,
            name=name,
            project=settings.project,
            zone=vm.zone,
            machine_type=vm.machine_type,
            tags=[NODE_TAG],
            # Exit nodes forward traffic for the whole tailnet
            can_ip_forward=True,
            allow_stopping_for_update=True,
            boot_disk=gcp.compute.InstanceBootDiskArgs(
                initialize_params=gcp.compute.InstanceBootDiskInitializeParamsArgs(
                    image=settings.image,
                    size=settings.disk_size_gb,
                ),
            ),
            network_interfaces=[
                gcp.compute.InstanceNetworkInterfaceArgs(
                    subnetwork=subnetworks[site].id,
                    stack_type="IPV4_IPV6",
                    access_configs=[gcp.compute.InstanceNetworkInterfaceAccessConfigArgs()],
                    ipv6_access_configs=[
                        gcp.compute.InstanceNetworkInterfaceIpv6AccessConfigArgs(
                            network_tier="PREMIUM",
                        )
                    ],
                )
            ],
            service_account=gcp.compute.InstanceServiceAccountArgs(
                email=service_account.email,
                scopes=["cloud-platform"],
            ),
            metadata_startup_script=startup_script(
                settings.tailscale_auth_key,
                hostname_for(site),
                settings.advertise_tags,
                nextdns_profile=settings.nextdns_profile,
                swap_size_mb=settings.swap_size_mb,
                ssh_enabled=settings.ssh_enabled,
            ),
            resource_policies=policy.self_link if policy else None,
        )
    return instances


def external_ip(instance):
    return instance.network_interfaces.apply(
        lambda nics: nics[0].access_configs[0].nat_ip
        if nics and nics[0].access_configs
        else None
    )
