"""Shared pytest fixtures for the shapegen test suite.

Provides reusable fixtures for:
- Fresh generation contexts
- The ``Order`` declaration used by the end-to-end scenario
- A ``Profile`` declaration exercising optional, nullable and nested fields
- An on-disk IR file in the front end's JSON shape
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

import pytest

from shapegen.ir.dependencies import collect_known_types, dependency_graph, find_recursive_types
from shapegen.ir.models import (
    ArrayType,
    Declaration,
    EnumMember,
    EnumType,
    GenerationContext,
    LiteralType,
    ObjectType,
    ParseResult,
    PrimitiveType,
    Property,
    ReferenceType,
    UnionType,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Contexts
# ---------------------------------------------------------------------------

@pytest.fixture
def ctx() -> GenerationContext:
    """An empty, per-test generation context."""
    return GenerationContext()


@pytest.fixture
def make_context() -> Callable[..., GenerationContext]:
    """Factory building a context the same way the pipeline does."""

    def _make(*declarations: Declaration) -> GenerationContext:
        graph = dependency_graph(declarations)
        return GenerationContext(
            recursive_types=find_recursive_types(graph),
            known_types=collect_known_types(declarations),
            declarations={d.name: d for d in declarations},
        )

    return _make


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------

@pytest.fixture
def order_decl() -> Declaration:
    """``Order { id: string, status: 'pending'|'shipped'|'cancelled', tags: string[] }``."""
    return Declaration(
        name="Order",
        type=ObjectType(
            properties=[
                Property(name="id", type=PrimitiveType(name="string")),
                Property(
                    name="status",
                    type=UnionType(
                        members=[
                            LiteralType(value="pending"),
                            LiteralType(value="shipped"),
                            LiteralType(value="cancelled"),
                        ]
                    ),
                ),
                Property(name="tags", type=ArrayType(element=PrimitiveType(name="string"))),
            ]
        ),
    )


@pytest.fixture
def address_decl() -> Declaration:
    return Declaration(
        name="Address",
        type=ObjectType(
            properties=[
                Property(name="street", type=PrimitiveType(name="string")),
                Property(name="zipCode", type=PrimitiveType(name="string")),
            ]
        ),
    )


@pytest.fixture
def profile_decl() -> Declaration:
    """A declaration touching every widget kind the form generator knows."""
    return Declaration(
        name="Profile",
        dependencies=frozenset({"Address"}),
        type=ObjectType(
            properties=[
                Property(name="displayName", type=PrimitiveType(name="string")),
                Property(name="notes", type=PrimitiveType(name="string"), is_optional=True),
                Property(
                    name="nickname",
                    type=UnionType(
                        members=[PrimitiveType(name="string"), PrimitiveType(name="undefined")]
                    ),
                ),
                Property(
                    name="age",
                    type=UnionType(
                        members=[PrimitiveType(name="number"), PrimitiveType(name="null")]
                    ),
                ),
                Property(name="active", type=PrimitiveType(name="boolean")),
                Property(name="birthday", type=PrimitiveType(name="Date")),
                Property(
                    name="role",
                    type=EnumType(
                        name="Role",
                        values=[
                            EnumMember(name="Admin", value="admin"),
                            EnumMember(name="Member", value="member"),
                        ],
                    ),
                ),
                Property(name="home", type=ReferenceType(name="Address")),
                Property(
                    name="scores",
                    type=ArrayType(element=PrimitiveType(name="number")),
                    is_optional=True,
                ),
                Property(
                    name="contacts",
                    type=ArrayType(
                        element=ObjectType(
                            properties=[
                                Property(name="email", type=PrimitiveType(name="string")),
                                Property(name="primary", type=PrimitiveType(name="boolean")),
                                Property(name="address", type=ReferenceType(name="Address")),
                                Property(
                                    name="labels",
                                    type=ArrayType(element=PrimitiveType(name="string")),
                                ),
                            ]
                        )
                    ),
                ),
            ]
        ),
    )


@pytest.fixture
def order_result(order_decl: Declaration) -> ParseResult:
    return ParseResult(declarations=[order_decl])


# ---------------------------------------------------------------------------
# On-disk IR
# ---------------------------------------------------------------------------

@pytest.fixture
def order_ir_path() -> Path:
    """Path to the ``Order`` parse result fixture (front-end JSON shape)."""
    path = FIXTURES_DIR / "order_ir.json"
    assert path.exists(), f"IR fixture not found at {path}"
    return path


@pytest.fixture
def write_ir(tmp_path: Path) -> Callable[[object], Path]:
    """Write arbitrary JSON to a temporary IR file and return its path."""

    def _write(data: object, name: str = "ir.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write
