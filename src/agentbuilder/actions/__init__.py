"""Action execution: template resolution, HTTP transport and the executor."""

from .executor import ActionExecutor
from .templates import TemplateResolver
from .transport import AiohttpTransport, HttpRequest, HttpResponse

__all__ = [
    "ActionExecutor",
    "AiohttpTransport",
    "HttpRequest",
    "HttpResponse",
    "TemplateResolver",
]
