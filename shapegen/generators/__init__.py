"""shapegen artifact backends.

Each backend turns one declaration into one artifact, appending diagnostics
to the shared GenerationContext instead of raising.

Key functions:
    build_schema  - Zod validation schema
    build_store   - Zustand store with typed mutation actions
    build_form    - React/MUI form bound to the store and schema
"""

from .form_gen import FormBuildResult, FormOptions, build_form
from .schema_gen import build_schema, generate_type_export, type_to_zod
from .store_gen import StoreOptions, build_store, type_to_typescript
from .templates import TemplateRenderer

__all__ = [
    # Validation schema
    "build_schema",
    "generate_type_export",
    "type_to_zod",
    # State store
    "StoreOptions",
    "build_store",
    "type_to_typescript",
    # Form component
    "FormOptions",
    "FormBuildResult",
    "build_form",
    # Templates
    "TemplateRenderer",
]
