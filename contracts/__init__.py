"""Shared contracts — source of truth for all PetalKit interfaces."""

from contracts.api import ChatRequest, ChatResponse, Choice, Message, Role, ToolCall, TraceMeta
from contracts.audit import AuditEntry, AuditEvent, AuditLogger
from contracts.calls import CallEnvelope, TypedCall, UnknownCall
from contracts.embedding import EmbeddingSpace
from contracts.errors import (
    ArgumentDecodeError,
    ErrorKind,
    ExecutionError,
    MalformedCallError,
    PermissionDeniedError,
    PetalKitError,
    UnknownToolError,
)
from contracts.manifest import Manifest, Policy, ModelsConfig, AuditConfig
from contracts.model import ModelAdapter
from contracts.policy import PolicyDecision, PolicyEngine, PolicyVerdict
from contracts.tool_ids import ToolId
from contracts.tool_sdk import (
    ExecutionResult,
    PermissionLevel,
    ResultStatus,
    SuggestedAction,
    ToolContext,
    ToolDescriptor,
    ToolExecutor,
    ToolFilterCriteria,
    ToolParameter,
)

__all__ = [
    # api
    "ChatRequest",
    "ChatResponse",
    "Choice",
    "Message",
    "Role",
    "ToolCall",
    "TraceMeta",
    # audit
    "AuditEntry",
    "AuditEvent",
    "AuditLogger",
    # calls
    "CallEnvelope",
    "TypedCall",
    "UnknownCall",
    # embedding
    "EmbeddingSpace",
    # errors
    "ArgumentDecodeError",
    "ErrorKind",
    "ExecutionError",
    "MalformedCallError",
    "PermissionDeniedError",
    "PetalKitError",
    "UnknownToolError",
    # manifest
    "Manifest",
    "Policy",
    "ModelsConfig",
    "AuditConfig",
    # model
    "ModelAdapter",
    # policy
    "PolicyDecision",
    "PolicyEngine",
    "PolicyVerdict",
    # tools
    "ToolId",
    "ExecutionResult",
    "PermissionLevel",
    "ResultStatus",
    "SuggestedAction",
    "ToolContext",
    "ToolDescriptor",
    "ToolExecutor",
    "ToolFilterCriteria",
    "ToolParameter",
]
