"""Boundary loader for front-end parse results.

The introspection front end hands over its declarations as JSON shaped like
:class:`~shapegen.ir.models.ParseResult`.  Anything that does not fit is a
hard failure here rather than a diagnostic further down.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..errors import DeclarationNotFoundError, IRLoadError
from .models import Declaration, ParseResult


def load_parse_result(source: str | Path | dict[str, Any]) -> ParseResult:
    """Load and validate a parse result.

    Args:
        source: Path to a JSON file, or an already-decoded mapping.

    Returns:
        A validated, immutable ``ParseResult``.

    Raises:
        IRLoadError: If the file is missing, is not valid JSON, or does not
            describe a valid IR.
    """
    if isinstance(source, dict):
        label = "<mapping>"
        data: Any = source
    else:
        path = Path(source)
        label = str(path)
        if not path.is_file():
            raise IRLoadError(label, "file not found")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise IRLoadError(label, f"invalid JSON ({exc.msg} at line {exc.lineno})") from exc

    try:
        return ParseResult.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        where = ".".join(str(p) for p in first["loc"])
        raise IRLoadError(label, f"{where}: {first['msg']}") from exc


def find_declaration(result: ParseResult, name: str) -> Declaration:
    """Return the declaration called *name*.

    Raises:
        DeclarationNotFoundError: If no declaration has that name.
    """
    for decl in result.declarations:
        if decl.name == name:
            return decl
    raise DeclarationNotFoundError(name, [d.name for d in result.declarations])
