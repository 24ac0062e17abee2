"""shapegen: generate Zod schemas, Zustand stores and MUI forms from a type IR."""

__version__ = "0.1.0"
