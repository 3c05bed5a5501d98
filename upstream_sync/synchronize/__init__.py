"""Opt-out checks, staging, pull request synchronization and fork fan-out."""

from .driver import run_link, run_link_workflow, validate_link_targets
from .opt_out import has_opted_out
from .pull_requests import create_pull_request, generate_pull_request_body, generate_pull_request_title
from .staging import get_branch_head

__all__ = [
    "run_link",
    "run_link_workflow",
    "validate_link_targets",
    "has_opted_out",
    "get_branch_head",
    "generate_pull_request_title",
    "generate_pull_request_body",
    "create_pull_request",
]
