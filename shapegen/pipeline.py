"""Batch generation over a whole ParseResult.

Usage::

    from shapegen.config import GeneratorConfig
    from shapegen.ir import load_parse_result
    from shapegen.pipeline import GenerationPipeline

    report = GenerationPipeline(GeneratorConfig()).run(load_parse_result("types.json"))
    report.print_summary()
    print(report.module_text("schema"))
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, Field

from shapegen.config import ArtifactKind, GeneratorConfig
from shapegen.generators.form_gen import build_form, component_name
from shapegen.generators.schema_gen import build_schema, generate_type_export, schema_name
from shapegen.generators.store_gen import build_store, store_name
from shapegen.generators.templates import TemplateRenderer
from shapegen.ir.dependencies import (
    acyclic_graph,
    collect_known_types,
    dependency_graph,
    find_recursive_types,
    topological_sort,
)
from shapegen.ir.models import Declaration, GenerationContext, ParseResult
from shapegen.utils import print_success, print_summary_table, print_warning


# ---------------------------------------------------------------------------
# Report models
# ---------------------------------------------------------------------------


class GeneratedArtifact(BaseModel):
    """One emitted piece of source text."""

    declaration: str = Field(..., description="Source declaration name")
    kind: ArtifactKind
    identifier: str = Field(..., description="Exported identifier, e.g. 'OrderSchema'")
    content: str


class GenerationReport(BaseModel):
    """Everything a single run produced."""

    artifacts: list[GeneratedArtifact] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def for_kind(self, kind: Union[ArtifactKind, str]) -> list[GeneratedArtifact]:
        kind = ArtifactKind(kind)
        return [a for a in self.artifacts if a.kind == kind]

    def module_text(self, kind: Union[ArtifactKind, str]) -> str:
        """Join all artifacts of one kind into a module body (imports excluded)."""
        return "\n\n".join(a.content for a in self.for_kind(kind))

    def summary(self) -> dict[str, str]:
        data = {k.value.capitalize(): str(len(self.for_kind(k))) for k in ArtifactKind}
        data["Warnings"] = str(len(self.warnings))
        return data

    def print_summary(self) -> None:
        """Print the artifact counts followed by every warning."""
        print_summary_table(self.summary(), title="Generation Summary")
        for warning in self.warnings:
            print_warning(warning)
        if not self.warnings:
            print_success(f"Generated {len(self.artifacts)} artifact(s) without warnings")


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class GenerationPipeline:
    """Runs the enabled backends over every declaration of a ParseResult.

    Declarations are processed dependency-first, so the schema module lists
    referenced validators before the validators that use them.  Each call to
    :meth:`run` builds a fresh :class:`GenerationContext`.

    Attributes:
        config: Backend selection and options.
        renderer: Template renderer handed to the store and form backends.
    """

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        renderer: Optional[TemplateRenderer] = None,
    ) -> None:
        self.config = config or GeneratorConfig()
        self.renderer = renderer

    def run(self, result: ParseResult) -> GenerationReport:
        ctx = self.create_context(result)
        for error in result.errors:
            ctx.warn(f"Parse error: {error}")

        report = GenerationReport()
        for decl in self.ordered(result):
            report.artifacts.extend(self.generate(decl, ctx))
        report.warnings = list(ctx.warnings)
        return report

    @staticmethod
    def create_context(result: ParseResult) -> GenerationContext:
        graph = dependency_graph(result.declarations)
        return GenerationContext(
            recursive_types=find_recursive_types(graph),
            known_types=collect_known_types(result.declarations),
            declarations=result.by_name(),
        )

    @staticmethod
    def ordered(result: ParseResult) -> list[Declaration]:
        """Declarations in dependency-first order; recursive edges are ignored."""
        graph = dependency_graph(result.declarations)
        recursive = find_recursive_types(graph)
        names = topological_sort(acyclic_graph(graph, recursive))
        by_name = result.by_name()
        return [by_name[name] for name in names]

    def generate(self, decl: Declaration, ctx: GenerationContext) -> list[GeneratedArtifact]:
        """Run every enabled backend on one declaration."""
        artifacts: list[GeneratedArtifact] = []
        name = decl.name

        if self.config.wants(ArtifactKind.SCHEMA):
            schema = build_schema(decl, ctx)
            if schema is not None:
                if name not in ctx.recursive_types:
                    schema = f"{schema}\n{generate_type_export(name)}"
                artifacts.append(
                    GeneratedArtifact(
                        declaration=name,
                        kind=ArtifactKind.SCHEMA,
                        identifier=schema_name(name),
                        content=schema,
                    )
                )

        # Store and form only make sense for exported object declarations;
        # the backends themselves report why anything else is skipped.
        if self.config.wants(ArtifactKind.STORE):
            store = build_store(decl, self.config.store_options(), ctx, self.renderer)
            if store is not None:
                artifacts.append(
                    GeneratedArtifact(
                        declaration=name,
                        kind=ArtifactKind.STORE,
                        identifier=store_name(name),
                        content=store,
                    )
                )

        if self.config.wants(ArtifactKind.FORM):
            form = build_form(decl, self.config.form_options(), ctx, self.renderer)
            if form is not None:
                artifacts.append(
                    GeneratedArtifact(
                        declaration=name,
                        kind=ArtifactKind.FORM,
                        identifier=component_name(name),
                        content=form.component,
                    )
                )

        return artifacts
