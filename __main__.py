"""Tailscale exit nodes on GCP, one per configured site"""

from exit_nodes.settings import load_settings
from exit_nodes.stack import build_stack, export_outputs

settings = load_settings()

stack = build_stack(settings)

export_outputs(stack)
