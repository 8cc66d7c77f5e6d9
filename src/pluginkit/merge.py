"""JSON helpers: MCP path resolution and additive merge payloads.

Targets that share a config file with the host (hooks, MCP servers) get a
merge payload instead of a full file. The payload lists the dotted key
paths it owns; an installer replaces those keys and leaves every other
key of the host document alone.
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from .models import JsonMergePayload

logger = logging.getLogger(__name__)

RELATIVE_ARG_PREFIX = "./"
OWNED_MAPS = ("hooks", "mcpServers")


def render_json(data: Any) -> str:
    """Serialize JSON with two-space indentation and a trailing newline."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def load_json_object(text: str, label: str) -> dict[str, Any] | None:
    """Parse a JSON object, or return None (with a warning) when it is invalid.

    Args:
        text: JSON text
        label: Name of the file, used in the log message

    Returns:
        The parsed object, or None if the text is not a JSON object
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Ignoring %s: invalid JSON (%s)", label, e)
        return None
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: expected a JSON object", label)
        return None
    return data


def resolve_mcp_paths(config: Mapping[str, Any], project_root: Path) -> dict[str, Any]:
    """Absolutize ``./`` arguments of every MCP server.

    Args:
        config: Parsed ``mcp.json``
        project_root: Root the relative arguments are joined onto

    Returns:
        A resolved copy; the input is not modified
    """
    resolved = copy.deepcopy(dict(config))
    servers = resolved.get("mcpServers")
    if not isinstance(servers, dict):
        return resolved

    for name, server in servers.items():
        if not isinstance(server, dict) or not isinstance(server.get("args"), list):
            continue
        server["args"] = [
            str(project_root / arg[len(RELATIVE_ARG_PREFIX) :])
            if isinstance(arg, str) and arg.startswith(RELATIVE_ARG_PREFIX)
            else arg
            for arg in server["args"]
        ]
        logger.debug("Resolved MCP server %s arguments", name)
    return resolved


def managed_key_paths(
    content: Mapping[str, Any],
    owned: Iterable[str] = OWNED_MAPS,
) -> list[str]:
    """List the key paths a payload owns.

    Each child of an owned map becomes ``<map>.<child>``; any other
    top-level key is owned whole. Duplicates are removed, order kept.
    """
    owned_maps = set(owned)
    paths: list[str] = []
    for key, value in content.items():
        if key in owned_maps and isinstance(value, Mapping):
            paths.extend(f"{key}.{child}" for child in value)
        else:
            paths.append(key)
    return list(dict.fromkeys(paths))


def build_merge_payload(
    content: Mapping[str, Any],
    managed_keys: Iterable[str] | None = None,
) -> JsonMergePayload:
    """Wrap content in a merge payload.

    Args:
        content: Content to merge into the host document
        managed_keys: Explicit key paths; derived from content when omitted
    """
    keys = managed_key_paths(content) if managed_keys is None else list(dict.fromkeys(managed_keys))
    return JsonMergePayload(managed_keys=keys, content=dict(content))


def render_merge_payload(payload: JsonMergePayload) -> str:
    """Serialize a payload with its ``managedKeys``/``content`` field names."""
    return render_json(payload.model_dump(by_alias=True))


def _lookup(document: Mapping[str, Any], path: list[str]) -> tuple[bool, Any]:
    node: Any = document
    for part in path:
        if not isinstance(node, Mapping) or part not in node:
            return False, None
        node = node[part]
    return True, node


def split_key_path(dotted: str, owned: Iterable[str] = OWNED_MAPS) -> list[str]:
    """Split a managed key path into its segments.

    Only the first dot of an owned-map path is a separator, so child
    names such as ``io.github.server`` stay whole. Other keys are
    top-level keys and are never split.
    """
    head, sep, rest = dotted.partition(".")
    if sep and head in set(owned):
        return [head, rest]
    return [dotted]


def apply_merge_payload(host: Mapping[str, Any], payload: JsonMergePayload) -> dict[str, Any]:
    """Merge a payload into a host document.

    Each managed path is replaced by the payload's value at that path, or
    removed from the host when the payload no longer carries it. Keys the
    payload does not manage are preserved.

    Args:
        host: Existing host document
        payload: Merge payload

    Returns:
        The merged document; the host is not modified
    """
    merged = copy.deepcopy(dict(host))
    for dotted in payload.managed_keys:
        path = split_key_path(dotted)
        found, value = _lookup(payload.content, path)

        parent: dict[str, Any] = merged
        for part in path[:-1]:
            child = parent.get(part)
            if not isinstance(child, dict):
                if not found:
                    break
                child = {}
                parent[part] = child
            parent = child
        else:
            if found:
                parent[path[-1]] = copy.deepcopy(value)
            else:
                parent.pop(path[-1], None)
    return merged
