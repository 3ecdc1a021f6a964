"""
JSON-safe accessors and small request helpers used by the adapters.

Upstream payloads are loosely typed (numbers often arrive as strings, fields
come and go between endpoints), so every adapter reads them through these
functions instead of indexing dicts directly.
"""
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional
from urllib.parse import urlencode as _urlencode

_PLACEHOLDER_RE = re.compile(r"\{([^}]+)\}")


def safe_value(obj: Any, key: Any, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        value = obj.get(key)
    elif isinstance(obj, (list, tuple)) and isinstance(key, int):
        value = obj[key] if -len(obj) <= key < len(obj) else None
    else:
        return default
    if value is None or value == "":
        return default
    return value


def safe_string(obj: Any, key: Any, default: Optional[str] = None) -> Optional[str]:
    value = safe_value(obj, key)
    if value is None:
        return default
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        # 1.0 -> "1" so flags such as status compare the same as their int form
        return str(int(value))
    return str(value)


def safe_number(obj: Any, key: Any, default: Optional[float] = None) -> Optional[float]:
    value = safe_value(obj, key)
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def safe_integer(obj: Any, key: Any, default: Optional[int] = None) -> Optional[int]:
    number = safe_number(obj, key)
    if number is None:
        return default
    return int(number)


def extract_params(path: str) -> List[str]:
    """Return the names of the ``{placeholder}`` segments in ``path``."""
    return _PLACEHOLDER_RE.findall(path)


def implode_params(path: str, params: Mapping[str, Any]) -> str:
    """Substitute ``{placeholder}`` segments of ``path`` from ``params``."""

    def _replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name in params:
            return str(params[name])
        return match.group(0)

    return _PLACEHOLDER_RE.sub(_replace, path)


def omit(params: Mapping[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    skipped = set(keys)
    return {k: v for k, v in params.items() if k not in skipped}


def keysort(params: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: params[k] for k in sorted(params)}


def urlencode(params: Mapping[str, Any]) -> str:
    # booleans go over the wire lowercase
    normalized = {
        k: ("true" if v is True else "false" if v is False else v)
        for k, v in params.items()
    }
    return _urlencode(normalized)
