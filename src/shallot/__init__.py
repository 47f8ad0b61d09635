"""Shallot asynchronous middleware framework."""

from .application import Shallot
from .bodies import BodyKind, classify_body
from .config import AppConfig, AppSummary
from .connection import ConnectionAborted, RawRequest, RawResponse
from .context import Context
from .exceptions import HTTPError, ShallotError, create_error
from .finalize import respond
from .middleware import Middleware, Next, compose
from .reporting import DefaultErrorHandler
from .requests import Request
from .responses import Response
from .server import ServerConfig
from .templates import Template
from .testing import TestClient

__all__ = [
    "AppConfig",
    "AppSummary",
    "BodyKind",
    "ConnectionAborted",
    "Context",
    "DefaultErrorHandler",
    "HTTPError",
    "Middleware",
    "Next",
    "RawRequest",
    "RawResponse",
    "Request",
    "Response",
    "ServerConfig",
    "Shallot",
    "ShallotError",
    "Template",
    "TestClient",
    "classify_body",
    "compose",
    "create_error",
    "respond",
]
