from __future__ import annotations

import importlib
from typing import Any, Mapping, Optional


def load_symbol(dotted: str, aliases: Optional[Mapping[str, str]] = None) -> Any:
    """
    Load a class or function from a dotted path or a short alias.
    Supports "package.module:ClassName", "package.module.ClassName" and, when
    ``aliases`` is given, a key of that mapping (e.g. "file" -> CSV sink).
    """
    if aliases and dotted in aliases:
        dotted = aliases[dotted]
    if ":" in dotted:
        module_name, symbol_name = dotted.split(":", 1)
    elif "." in dotted:
        module_name, symbol_name = dotted.rsplit(".", 1)
    else:
        raise ImportError(f"Cannot resolve {dotted!r}: expected module:Name or a known alias")

    module = importlib.import_module(module_name)
    try:
        return getattr(module, symbol_name)
    except AttributeError as exc:
        raise ImportError(f"{module_name} has no attribute {symbol_name}") from exc
