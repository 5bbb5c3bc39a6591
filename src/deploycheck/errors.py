"""Root exception types shared across deploycheck layers."""

from __future__ import annotations


class DeploycheckError(Exception):
    """Base class for every user-facing deploycheck failure."""


class ContractViolation(AssertionError):  # noqa: N818 - mirrors assertion semantics.
    """Programming-contract failure that valid input can never trigger.

    Raised when a caller reads data in a shape that an earlier pipeline stage was
    required to produce (for example, reading integration metadata as structured
    before the configuration was normalized).
    """


__all__ = ["ContractViolation", "DeploycheckError"]
