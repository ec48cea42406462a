"""Source executors."""

from sourcing.executors.base import run_adapter_with_status

__all__ = ["run_adapter_with_status"]
