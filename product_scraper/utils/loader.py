from __future__ import annotations

import importlib
from typing import Any


def load_symbol(dotted: str) -> Any:
    """
    Resolve "package.module:attr" or "package.module.attr" to the object it names.
    Used for swappable engines, exporters and extra selector profiles.
    """
    dotted = dotted.strip()
    if ":" in dotted:
        module_name, symbol_name = dotted.split(":", 1)
    elif "." in dotted:
        module_name, symbol_name = dotted.rsplit(".", 1)
    else:
        raise ImportError(f"{dotted!r} is not a dotted path")

    module = importlib.import_module(module_name)
    try:
        return getattr(module, symbol_name)
    except AttributeError:
        raise ImportError(f"{module_name!r} has no attribute {symbol_name!r}") from None
