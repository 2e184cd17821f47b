"""Tool descriptors and JSON Schema derivation for local tools.

A ToolDescriptor is what the model sees: a name, a description and a
JSON Schema for the arguments. Local tools additionally carry a handler;
their schema is derived from the handler's type annotations.
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, get_type_hints


_TYPE_MAP = {
    str: {"type": "string"},
    int: {"type": "integer"},
    float: {"type": "number"},
    bool: {"type": "boolean"},
    list: {"type": "array"},
    dict: {"type": "object"},
}


def empty_parameters() -> dict:
    """Schema for a tool that takes no arguments."""
    return {"type": "object", "properties": {}, "required": []}


@dataclass(frozen=True)
class ToolDescriptor:
    """A tool as offered to the model."""

    name: str
    description: str
    parameters: dict = field(default_factory=empty_parameters)


@dataclass(frozen=True)
class ToolDef:
    """A local tool definition with its JSON Schema and handler."""

    name: str
    description: str
    parameters: dict
    handler: Callable

    @property
    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(self.name, self.description, self.parameters)


def _annotation_to_schema(annotation: Any) -> dict:
    """Convert a Python type annotation to a JSON Schema type."""
    if annotation is inspect.Parameter.empty or annotation is None:
        return {"type": "string"}

    schema = _TYPE_MAP.get(annotation)
    if schema:
        return dict(schema)

    origin = getattr(annotation, "__origin__", None)
    args = getattr(annotation, "__args__", ())

    # Optional[X] is Union[X, None]
    if origin is not None and len(args) == 2 and type(None) in args:
        inner = [a for a in args if a is not type(None)][0]
        return _annotation_to_schema(inner)

    if origin is list and args:
        return {"type": "array", "items": _annotation_to_schema(args[0])}

    if origin is dict:
        return {"type": "object"}

    return {"type": "string"}


def callable_to_tool_def(
    name: str,
    fn: Callable,
    description: str = "",
) -> ToolDef:
    """Build a ToolDef from a Python callable using its signature and docstring.

    Only the docstring summary becomes the description; the ``Args:``
    section is folded into per-parameter descriptions instead.

    Args:
        name: Tool name exposed to the model.
        fn: The callable to introspect.
        description: Fallback description if the function has no docstring.

    Returns:
        A ToolDef with JSON Schema parameters derived from type annotations.
    """
    sig = inspect.signature(fn)
    doc = inspect.getdoc(fn) or ""

    try:
        hints = get_type_hints(fn)
    except Exception:
        hints = {}

    properties = {}
    required = []

    for param_name, param in sig.parameters.items():
        if param_name in ("self", "cls"):
            continue

        annotation = hints.get(param_name, param.annotation)
        prop_schema = _annotation_to_schema(annotation)

        param_doc = _extract_param_doc(doc, param_name)
        if param_doc:
            prop_schema["description"] = param_doc

        properties[param_name] = prop_schema

        if param.default is inspect.Parameter.empty:
            required.append(param_name)

    parameters = {
        "type": "object",
        "properties": properties,
        "required": required,
    }

    return ToolDef(
        name=name,
        description=_summary(doc) or description,
        parameters=parameters,
        handler=fn,
    )


def _summary(docstring: str) -> str:
    """First paragraph of a docstring, joined onto one line."""
    paragraph = docstring.strip().split("\n\n", 1)[0]
    return " ".join(line.strip() for line in paragraph.splitlines())


def _extract_param_doc(docstring: str, param_name: str) -> Optional[str]:
    """Extract a parameter's description from a Google-style docstring."""
    if not docstring:
        return None

    in_args = False
    for line in docstring.split("\n"):
        stripped = line.strip()

        if stripped.lower().startswith("args:"):
            in_args = True
            continue

        if not in_args:
            continue

        # A new section header ends the Args block
        if stripped.endswith(":") and " " not in stripped:
            break

        if stripped.startswith(f"{param_name}:") or stripped.startswith(f"{param_name} ("):
            colon_idx = stripped.index(":")
            return stripped[colon_idx + 1:].strip()

    return None
