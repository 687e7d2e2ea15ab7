import pulumi
import pytest

from exit_nodes.settings import Schedule, StackSettings, VmConfig


class ExitNodeMocks(pulumi.runtime.Mocks):
    """Echo inputs back as state and remember every declared resource."""

    def __init__(self):
        self.resources = []

    def new_resource(self, args: pulumi.runtime.MockResourceArgs):
        self.resources.append((args.typ, args.name))
        outputs = dict(args.inputs)
        if args.typ == "gcp:compute/resourcePolicy:ResourcePolicy":
            outputs["selfLink"] = f"https://compute.googleapis.com/{args.name}"
        if args.typ == "gcp:serviceaccount/account:Account":
            outputs["email"] = f"{args.inputs['accountId']}@test-project.iam.gserviceaccount.com"
        return [args.name + "_id", outputs]

    def call(self, args: pulumi.runtime.MockCallArgs):
        return {}


MOCKS = ExitNodeMocks()
pulumi.runtime.set_mocks(MOCKS, project="tailscale-exit-nodes", stack="test", preview=False)


@pytest.fixture
def mocks():
    MOCKS.resources.clear()
    return MOCKS


def make_settings(**overrides):
    values = dict(
        project="test-project",
        tailscale_auth_key="tskey-auth-test",
        vm_configs={
            "paris": VmConfig("europe-west9", "europe-west9-a", "e2-micro", "10.10.0.0/24"),
            "netherlands": VmConfig("europe-west4", "europe-west4-a", "e2-micro", "10.20.0.0/24"),
        },
    )
    values.update(overrides)
    return StackSettings(**values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def scheduled_settings():
    return make_settings(
        ssh_enabled=False,
        schedule=Schedule(start="0 7 * * *", stop="0 23 * * *", time_zone="Europe/Paris"),
    )
