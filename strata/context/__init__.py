"""Context assembly."""

from strata.context.assembler import ContextAssembler

__all__ = ["ContextAssembler"]
