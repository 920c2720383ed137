"""
@local_tool decorator - turn a typed async function into an in-process tool.

The function signature becomes the tool's JSON Schema; the decorated name
is replaced by a :class:`ToolDescriptor` whose handler unpacks the model's
argument dict into keyword arguments.

Usage::

    from typing import Annotated
    from tunnelchat.tools import local_tool

    @local_tool(service="editor")
    async def editor_open_file(
        file_name: Annotated[str, "File to show in the editor"],
        line: Annotated[int, "Line to scroll to"] = 1,
    ) -> dict:
        \"\"\"Open a file in the editor pane.\"\"\"
        ...

    registry.register(editor_open_file)
"""

from __future__ import annotations

import inspect
from typing import (
    Annotated,
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from .models import ToolDescriptor

_NoneType = type(None)

_SCALARS = {str: "string", bool: "boolean", int: "integer", float: "number"}


def _strip_annotated(annotation: Any) -> Any:
    if get_origin(annotation) is Annotated:
        return get_args(annotation)[0]
    return annotation


def _annotated_description(annotation: Any) -> Optional[str]:
    if get_origin(annotation) is not Annotated:
        return None
    for meta in get_args(annotation)[1:]:
        if isinstance(meta, str):
            return meta
    return None


def _is_optional(annotation: Any) -> bool:
    return get_origin(annotation) is Union and _NoneType in get_args(annotation)


def _json_type(annotation: Any) -> Dict[str, Any]:
    """Map a Python annotation to a JSON Schema fragment."""
    base = _strip_annotated(annotation)

    if get_origin(base) is Union:
        members = [a for a in get_args(base) if a is not _NoneType]
        if len(members) == 1:
            return _json_type(members[0])
        return {}

    if base in _SCALARS:
        return {"type": _SCALARS[base]}

    container = get_origin(base) or base
    if container is list:
        item_args = get_args(base)
        if item_args:
            return {"type": "array", "items": _json_type(item_args[0])}
        return {"type": "array"}
    if container is dict:
        return {"type": "object"}

    # Any / unknown: accept whatever the model sends
    return {}


def build_parameter_schema(func: Callable) -> Dict[str, Any]:
    """Build ``{"type": "object", "properties": ..., "required": ...}`` from *func*."""
    sig = inspect.signature(func)
    try:
        hints = get_type_hints(func, include_extras=True)
    except (NameError, TypeError):
        hints = {}

    properties: Dict[str, Any] = {}
    required: List[str] = []

    for name, param in sig.parameters.items():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue

        annotation = hints.get(name, param.annotation)
        if annotation is inspect.Parameter.empty:
            annotation = str

        prop = _json_type(annotation)
        desc = _annotated_description(annotation)
        if desc:
            prop["description"] = desc
        properties[name] = prop

        if param.default is inspect.Parameter.empty and not _is_optional(_strip_annotated(annotation)):
            required.append(name)

    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def _build_handler(func: Callable) -> Callable:
    accepted = {
        name
        for name, param in inspect.signature(func).parameters.items()
        if param.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    }

    async def handler(args: Dict[str, Any]) -> Any:
        return await func(**{k: v for k, v in args.items() if k in accepted})

    handler.__wrapped__ = func
    return handler


def local_tool(
    func: Optional[Callable] = None,
    *,
    service: str = "local",
    name: Optional[str] = None,
    description: Optional[str] = None,
    defaults: Optional[Dict[str, Any]] = None,
) -> Any:
    """Decorator converting an async function into a local :class:`ToolDescriptor`.

    Supports bare ``@local_tool`` and ``@local_tool(service="filesystem")``.
    The first docstring paragraph is the description unless one is given.
    """

    def decorate(fn: Callable) -> ToolDescriptor:
        if not inspect.iscoroutinefunction(fn):
            raise TypeError(f"@local_tool requires an async function, got {fn.__name__}")
        doc = inspect.getdoc(fn) or ""
        return ToolDescriptor(
            name=name or fn.__name__,
            description=description or doc.split("\n\n")[0].strip(),
            parameter_schema=build_parameter_schema(fn),
            service_name=service,
            handler=_build_handler(fn),
            defaults=dict(defaults or {}),
        )

    if func is not None:
        return decorate(func)
    return decorate
