"""Policy engine contracts.

The policy engine decides whether a decoded call may reach its executor.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from pydantic import BaseModel

from contracts.manifest import Manifest
from contracts.tool_sdk import ToolDescriptor


class PolicyVerdict(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class PolicyDecision(BaseModel):
    verdict: PolicyVerdict
    rule: str = ""      # which rule triggered the decision
    reason: str = ""    # human-readable explanation


class PolicyEngine(ABC):
    """Interface that the runtime policy engine must implement."""

    @abstractmethod
    def load_manifest(self, manifest: Manifest) -> None:
        """Load or reload policy rules from a parsed manifest."""
        ...

    @abstractmethod
    def check_tool(self, descriptor: ToolDescriptor) -> PolicyDecision:
        """Is a call to this tool allowed?"""
        ...
