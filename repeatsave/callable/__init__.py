"""Callable protocol for repeatsave."""

from repeatsave.callable.execute import execute
from repeatsave.callable.result import CallableResult

__all__ = ["CallableResult", "execute"]
