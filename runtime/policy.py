"""Permission policy engine.

Gates decoded calls on the manifest: the tool's required permission must
not exceed ``policy.max_permission``, and a non-empty ``policy.tools.allow``
list must name the tool.  Developer mode waives both.
"""

from __future__ import annotations

from contracts.manifest import Manifest, PolicyMode
from contracts.policy import PolicyDecision, PolicyEngine, PolicyVerdict
from contracts.tool_sdk import PermissionLevel, ToolDescriptor


class PermissionPolicyEngine(PolicyEngine):
    """Concrete policy engine driven by a parsed Manifest."""

    def __init__(self, manifest: Manifest | None = None) -> None:
        self._manifest: Manifest | None = None
        if manifest is not None:
            self.load_manifest(manifest)

    def load_manifest(self, manifest: Manifest) -> None:
        self._manifest = manifest

    @property
    def mode(self) -> PolicyMode:
        if self._manifest is None:
            return PolicyMode.LOCAL_ONLY
        return self._manifest.runtime.policy_mode

    @property
    def max_permission(self) -> PermissionLevel:
        if self._manifest is None:
            return PermissionLevel.BASIC
        return self._manifest.policy.max_permission

    def check_tool(self, descriptor: ToolDescriptor) -> PolicyDecision:
        if self._manifest is None:
            return PolicyDecision(
                verdict=PolicyVerdict.DENY,
                rule="no_manifest",
                reason="No manifest loaded",
            )

        if self.mode == PolicyMode.DEVELOPER:
            return PolicyDecision(
                verdict=PolicyVerdict.ALLOW,
                rule="developer_mode",
                reason="Developer mode allows all tools",
            )

        name = descriptor.id.value
        required = descriptor.required_permission
        if required > self.max_permission:
            return PolicyDecision(
                verdict=PolicyVerdict.DENY,
                rule="policy.max_permission",
                reason=(
                    f"Tool '{name}' needs {required.label()} permission; "
                    f"this app allows up to {self.max_permission.label()}"
                ),
            )

        allowed = self._manifest.policy.tools.allow
        if allowed and name not in allowed:
            return PolicyDecision(
                verdict=PolicyVerdict.DENY,
                rule="tools.allow",
                reason=f"Tool '{name}' is not in the allow list",
            )

        return PolicyDecision(
            verdict=PolicyVerdict.ALLOW,
            rule="tools.allow" if allowed else "policy.max_permission",
            reason=f"Tool '{name}' is permitted",
        )
