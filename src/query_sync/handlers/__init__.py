"""Handler layer.

Contains the HTTP request/response handlers of the cache inspector and the
conditional render adapter used by presentation code.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Cache)  -> (Data Access)
"""

from .inspector_handler import InspectorHandler
from .render import RenderBranch, conditional_render, is_empty, select_branch

__all__ = [
    "InspectorHandler",
    "RenderBranch",
    "conditional_render",
    "is_empty",
    "select_branch",
]
