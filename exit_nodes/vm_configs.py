# One exit node per site. The site key ends up in resource names and in the
# Tailscale hostname, so keep it a lowercase DNS label.
VM_CONFIGS = {
    "paris": {
        "region": "europe-west9",
        "zone": "europe-west9-a",
        "machine_type": "e2-micro",
        "cidr": "10.10.0.0/24",
    },
    "netherlands": {
        "region": "europe-west4",
        "zone": "europe-west4-a",
        "machine_type": "e2-micro",
        "cidr": "10.20.0.0/24",
    },
}

VM_CONFIG_FIELDS = ("region", "zone", "machine_type", "cidr")

# Stack config uses camelCase keys, same as every other Pulumi config value
CONFIG_KEY_ALIASES = {"machineType": "machine_type"}
