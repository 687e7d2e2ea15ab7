"""Boot script run by the guest on every boot.

The script is a straight list of steps. Each step runs one command and the
script stops at the first one that fails, so a half-configured node shows up
in the serial console instead of silently joining the tailnet.
"""

import shlex
from dataclasses import dataclass
from typing import List, Optional

import pulumi

SYSCTL_CONF = "/etc/sysctl.d/99-tailscale.conf"
SWAP_FILE = "/swapfile"
TAILSCALE_INSTALL_URL = "https://tailscale.com/install.sh"
NEXTDNS_REPO_KEY_URL = "https://repo.nextdns.io/nextdns.gpg"
NEXTDNS_REPO = "deb [signed-by=/usr/share/keyrings/nextdns.gpg] https://repo.nextdns.io/deb stable main"


@dataclass(frozen=True)
class BootStep:
    description: str
    command: str


def render_script(steps: List[BootStep]) -> str:
    """Render the steps into a bash script that exits on the first failure."""
    # $? of a pipe is its last command, a failed curl | sh would pass
    lines = ["#!/bin/bash", "set -o pipefail", ""]
    for step in steps:
        lines += [
            f"# {step.description}",
            step.command,
            "if [ $? -ne 0 ]; then",
            f"  echo {shlex.quote('startup: ' + step.description + ' failed')} >&2",
            "  exit 1",
            "fi",
            "",
        ]
    lines.append('echo "startup: done"')
    return "\n".join(lines) + "\n"


def tailscale_up_command(
    auth_key: str,
    hostname: str,
    advertise_tags: List[str],
    accept_dns: bool = True,
) -> str:
    args = [
        "tailscale",
        "up",
        f"--authkey={auth_key}",
        f"--hostname={hostname}",
        "--advertise-exit-node",
        "--ssh=false",
    ]
    if advertise_tags:
        args.append("--advertise-tags=" + ",".join(advertise_tags))
    if not accept_dns:
        args.append("--accept-dns=false")
    return " ".join(shlex.quote(a) for a in args)


def boot_steps(
    auth_key: str,
    hostname: str,
    advertise_tags: List[str],
    nextdns_profile: Optional[str] = None,
    swap_size_mb: int = 512,
    ssh_enabled: bool = True,
) -> List[BootStep]:
    steps = []

    if swap_size_mb > 0:
        # e2-micro has 1GB of memory, apt alone can exhaust it.
        # fstab keeps the swap active after the first boot, so every step is guarded.
        steps += [
            BootStep(
                "create swap file",
                f"[ -f {SWAP_FILE} ] || {{ fallocate -l {swap_size_mb}M {SWAP_FILE} && chmod 600 {SWAP_FILE} && mkswap {SWAP_FILE}; }}",
            ),
            BootStep(
                "enable swap",
                f"swapon --show=NAME --noheadings | grep -x {SWAP_FILE} > /dev/null || swapon {SWAP_FILE}",
            ),
            BootStep(
                "persist swap in fstab",
                f"grep -q '^{SWAP_FILE} ' /etc/fstab || echo '{SWAP_FILE} none swap sw 0 0' >> /etc/fstab",
            ),
        ]

    steps += [
        BootStep(
            "enable ip forwarding",
            f"printf 'net.ipv4.ip_forward = 1\\nnet.ipv6.conf.all.forwarding = 1\\n' > {SYSCTL_CONF}",
        ),
        BootStep("apply sysctl settings", f"sysctl -p {SYSCTL_CONF}"),
        BootStep("update package index", "apt-get update"),
        BootStep("install prerequisites", "DEBIAN_FRONTEND=noninteractive apt-get install -y curl gnupg"),
        BootStep("install tailscale", f"curl -fsSL {TAILSCALE_INSTALL_URL} | sh"),
    ]

    if nextdns_profile:
        steps += [
            BootStep(
                "add nextdns repository key",
                f"curl -fsSL {NEXTDNS_REPO_KEY_URL} | gpg --dearmor -o /usr/share/keyrings/nextdns.gpg",
            ),
            BootStep(
                "add nextdns repository",
                f"echo {shlex.quote(NEXTDNS_REPO)} > /etc/apt/sources.list.d/nextdns.list",
            ),
            BootStep("update package index", "apt-get update"),
            BootStep("install nextdns", "DEBIAN_FRONTEND=noninteractive apt-get install -y nextdns"),
            BootStep(
                "configure nextdns",
                "nextdns install -profile "
                + shlex.quote(nextdns_profile)
                + " -report-client-info -auto-activate",
            ),
        ]

    steps.append(
        BootStep(
            "bring up tailscale",
            tailscale_up_command(
                auth_key, hostname, advertise_tags, accept_dns=not nextdns_profile
            ),
        )
    )

    # Only after tailscale up succeeded, otherwise a bad auth key locks us out
    if not ssh_enabled:
        steps.append(BootStep("disable ssh", "systemctl disable --now ssh"))

    return steps


def startup_script(
    auth_key: pulumi.Input[str],
    hostname: str,
    advertise_tags: List[str],
    nextdns_profile: Optional[str] = None,
    swap_size_mb: int = 512,
    ssh_enabled: bool = True,
) -> pulumi.Output[str]:
    """Boot script for one node. Stays secret when the auth key is."""
    return pulumi.Output.from_input(auth_key).apply(
        lambda key: render_script(
            boot_steps(
                key,
                hostname,
                advertise_tags,
                nextdns_profile=nextdns_profile,
                swap_size_mb=swap_size_mb,
                ssh_enabled=ssh_enabled,
            )
        )
    )
