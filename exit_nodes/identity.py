import pulumi_gcp as gcp

SERVICE_ACCOUNT_ID = "tailscale-exit-node"


def create_service_account(project):
    # Shared by every node, the nodes call no GCP APIs themselves
    return gcp.serviceaccount.Account(
        SERVICE_ACCOUNT_ID,
        account_id=SERVICE_ACCOUNT_ID,
        display_name="Tailscale exit node",
        project=project,
    )
