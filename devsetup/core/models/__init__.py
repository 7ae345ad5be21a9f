"""
Domain models — Pydantic types for the installer.

All models are re-exported here for convenient access:

    from devsetup.core.models import CommandInvocation, ExecutionOutcome, Receipt
"""

from devsetup.core.models.invocation import CommandInvocation, ExecutionOutcome
from devsetup.core.models.packages import PackageCatalog, PackageGroup, PackageProfile
from devsetup.core.models.receipt import Receipt

__all__ = [
    "CommandInvocation",
    "ExecutionOutcome",
    "PackageCatalog",
    "PackageGroup",
    "PackageProfile",
    "Receipt",
]
