import pulumi
import pulumi_gcp as gcp

NETWORK_NAME = "tailscale-network"


def create_network(project):
    # Custom mode, every subnet below is declared explicitly
    return gcp.compute.Network(
        NETWORK_NAME,
        name=NETWORK_NAME,
        project=project,
        auto_create_subnetworks=False,
        description="Tailscale exit nodes",
    )


def create_subnetworks(project, network, vm_configs):
    """One subnetwork per site, in the site's region."""
    subs = {}
    for site, vm in vm_configs.items():
        name = f"tailscale-subnetwork-{site}"
        pulumi.log.info(f"declaring subnetwork {name} ({vm.cidr}) in {vm.region}")
        subs[site] = gcp.compute.Subnetwork(
            name,
            name=name,
            project=project,
            region=vm.region,
            network=network.id,
            ip_cidr_range=vm.cidr,
            stack_type="IPV4_IPV6",
            ipv6_access_type="EXTERNAL",
        )
    return subs
