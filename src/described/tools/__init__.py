"""Tools: descriptors, the invocation pipeline and the decorator.

- Descriptor / HttpEndpoint: declarative description of a unit of work
- Tool / build: the runtime object running validate -> cache -> dispatch
- InvokeOptions: per-call cache override, log sink and inbound headers
- tool: decorator building a Tool around a function
"""

from described.io.http import HttpEndpoint

from .decorator import tool
from .descriptor import Descriptor, Intents, LocalTarget, RemoteTarget, Target
from .pipeline import InvokeOptions, Tool, build

__all__ = [
    "Descriptor",
    "HttpEndpoint",
    "Intents",
    "LocalTarget",
    "RemoteTarget",
    "Target",
    "InvokeOptions",
    "Tool",
    "build",
    "tool",
]
