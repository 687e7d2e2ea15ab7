import pulumi
import pulumi_gcp as gcp


def create_schedules(project, vm_configs, schedule):
    """Start/stop policies, one per site. Empty when no schedule is set."""
    policies = {}
    if schedule is None:
        return policies

    for site, vm in vm_configs.items():
        name = f"tailscale-schedule-{site}"
        pulumi.log.info(
            f"declaring schedule {name}: start '{schedule.start}', stop '{schedule.stop}' ({schedule.time_zone})"
        )
        policies[site] = gcp.compute.ResourcePolicy(
            name,
            name=name,
            project=project,
            region=vm.region,
            description=f"Start/stop schedule for exit node {site}",
            instance_schedule_policy=gcp.compute.ResourcePolicyInstanceSchedulePolicyArgs(
                vm_start_schedule=gcp.compute.ResourcePolicyInstanceSchedulePolicyVmStartScheduleArgs(
                    schedule=schedule.start,
                ),
                vm_stop_schedule=gcp.compute.ResourcePolicyInstanceSchedulePolicyVmStopScheduleArgs(
                    schedule=schedule.stop,
                ),
                time_zone=schedule.time_zone,
            ),
        )
    return policies
