"""Request/response bridge between the CLI and the companion process."""

from .client import RpcClient, connect_unix
from .codec import encode_frame, parse_reply, parse_request, read_frame
from .correlation import CorrelationTable
from .protocol import COMMANDS, ReplyEnvelope, RequestEnvelope
from .router import CommandHandler, CommandRouter, RouterState

__all__ = [
    "COMMANDS",
    "CommandHandler",
    "CommandRouter",
    "CorrelationTable",
    "ReplyEnvelope",
    "RequestEnvelope",
    "RouterState",
    "RpcClient",
    "connect_unix",
    "encode_frame",
    "parse_reply",
    "parse_request",
    "read_frame",
]
