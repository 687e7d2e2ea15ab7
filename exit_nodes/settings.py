"""Stack configuration for the exit node program.

Values come from the Pulumi stack config (``pulumi config set ...``). Anything
that would produce a broken resource graph is rejected here, before a single
resource is declared.
"""

import ipaddress
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pulumi

from exit_nodes.vm_configs import CONFIG_KEY_ALIASES, VM_CONFIG_FIELDS, VM_CONFIGS

DEFAULT_IMAGE = "debian-cloud/debian-12"
DEFAULT_TAGS = ["tag:exit-node"]

_SITE_NAME = re.compile(r"^[a-z]([-a-z0-9]*[a-z0-9])?$")


class ConfigurationError(pulumi.RunError):
    """Raised for stack config that cannot be turned into resources."""


@dataclass(frozen=True)
class VmConfig:
    region: str
    zone: str
    machine_type: str
    cidr: str


@dataclass(frozen=True)
class Schedule:
    start: str
    stop: str
    time_zone: str = "UTC"


@dataclass
class StackSettings:
    project: str
    tailscale_auth_key: pulumi.Input[str]
    vm_configs: Dict[str, VmConfig]
    nextdns_profile: Optional[str] = None
    advertise_tags: List[str] = field(default_factory=lambda: list(DEFAULT_TAGS))
    image: str = DEFAULT_IMAGE
    disk_size_gb: int = 10
    swap_size_mb: int = 512
    ssh_enabled: bool = True
    schedule: Optional[Schedule] = None


def parse_vm_configs(raw: dict) -> Dict[str, VmConfig]:
    """Turn the raw ``vmConfigs`` object into validated ``VmConfig`` entries."""
    if not raw:
        raise ConfigurationError("vmConfigs must declare at least one site")

    vm_configs = {}
    networks = {}
    for site, values in raw.items():
        if not _SITE_NAME.match(site) or len(site) > 40:
            raise ConfigurationError(
                f"site name {site!r} must be a lowercase DNS label of at most 40 characters"
            )
        if not isinstance(values, dict):
            raise ConfigurationError(f"site {site!r} must be an object")
        values = {CONFIG_KEY_ALIASES.get(k, k): v for k, v in values.items()}
        missing = [f for f in VM_CONFIG_FIELDS if not values.get(f)]
        if missing:
            raise ConfigurationError(f"site {site!r} is missing {', '.join(missing)}")

        vm = VmConfig(**{f: str(values[f]) for f in VM_CONFIG_FIELDS})
        if not vm.zone.startswith(vm.region + "-"):
            raise ConfigurationError(
                f"site {site!r}: zone {vm.zone} is not in region {vm.region}"
            )
        try:
            net = ipaddress.IPv4Network(vm.cidr)
        except ValueError as e:
            raise ConfigurationError(f"site {site!r}: invalid cidr {vm.cidr}: {e}") from e
        for other, other_net in networks.items():
            if net.overlaps(other_net):
                raise ConfigurationError(
                    f"site {site!r}: cidr {vm.cidr} overlaps site {other!r} ({other_net})"
                )
        networks[site] = net
        vm_configs[site] = vm
    return vm_configs


def parse_schedule(raw: Optional[dict]) -> Optional[Schedule]:
    if not raw:
        return None
    if not isinstance(raw, dict):
        raise ConfigurationError("schedule must be an object with start, stop and timeZone")
    if not raw.get("start") or not raw.get("stop"):
        raise ConfigurationError("schedule needs both start and stop cron expressions")
    return Schedule(
        start=raw["start"],
        stop=raw["stop"],
        time_zone=raw.get("timeZone") or "UTC",
    )


def parse_tags(raw) -> List[str]:
    if not raw:
        return list(DEFAULT_TAGS)
    if not isinstance(raw, list) or not all(isinstance(t, str) for t in raw):
        raise ConfigurationError("advertiseTags must be a list of strings")
    return list(raw)


def check_auth_key(key: str) -> str:
    if not key.startswith("tskey-"):
        pulumi.log.warn("tailscaleAuthKey does not look like a Tailscale auth key")
    return key


def load_settings(config: Optional[pulumi.Config] = None) -> StackSettings:
    """Read and validate the stack configuration."""
    config = config or pulumi.Config()

    disk_size_gb = config.get_int("diskSizeGb")
    swap_size_mb = config.get_int("swapSizeMb")
    ssh_enabled = config.get_bool("sshEnabled")

    settings = StackSettings(
        project=config.require("project"),
        # Checked once the secret resolves, it stays secret
        tailscale_auth_key=config.require_secret("tailscaleAuthKey").apply(check_auth_key),
        vm_configs=parse_vm_configs(config.get_object("vmConfigs") or VM_CONFIGS),
        nextdns_profile=config.get("nextdnsProfile"),
        advertise_tags=parse_tags(config.get_object("advertiseTags")),
        image=config.get("image") or DEFAULT_IMAGE,
        disk_size_gb=10 if disk_size_gb is None else disk_size_gb,
        swap_size_mb=512 if swap_size_mb is None else swap_size_mb,
        ssh_enabled=True if ssh_enabled is None else ssh_enabled,
        schedule=parse_schedule(config.get_object("schedule")),
    )
    check_settings(settings)
    return settings


def check_settings(settings: StackSettings) -> None:
    if settings.disk_size_gb < 10:
        raise ConfigurationError("diskSizeGb must be at least 10")
    if settings.swap_size_mb < 0:
        raise ConfigurationError("swapSizeMb cannot be negative")
    for tag in settings.advertise_tags:
        if not tag.startswith("tag:"):
            raise ConfigurationError(f"advertiseTags entry {tag!r} must start with 'tag:'")

    if not settings.ssh_enabled and settings.schedule is None:
        # Once sshd is gone the only way in is over the tailnet
        pulumi.log.warn(
            "sshEnabled is false and no schedule is set: instances are only reachable through Tailscale"
        )
