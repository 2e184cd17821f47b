"""Qualified tool names for remote providers.

Remote tools are exposed to the model as ``mcp_<provider>_<tool>`` with
every character outside ``[A-Za-z0-9_-]`` replaced by ``_``. The format
must stay stable: transcripts and other clients depend on it.
"""

import re

QUALIFIED_PREFIX = "mcp_"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def sanitize(value: str) -> str:
    """Replace every character outside [A-Za-z0-9_-] with an underscore."""
    return _UNSAFE_CHARS.sub("_", value)


def qualify(provider_id: str, tool_name: str) -> str:
    """Build the qualified name for a provider's tool."""
    return f"{QUALIFIED_PREFIX}{sanitize(provider_id)}_{sanitize(tool_name)}"

