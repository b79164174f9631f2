"""
Template Resolution Orchestrator

Single entry point of the engine. For each request the context is built
once and frozen, then every document region (body, each header, each
footer) runs the pass pipeline on its own:

    loop expansion -> conditional stripping -> placeholder substitution -> numbering

Grammar rules are already part of the context when the pipeline starts.
Each region gets its own numbering state.

Example:
    resolver = TemplateResolver()
    result = resolver.resolve_text("[[caps:greeting]]", context={"greeting": "hello"})
    result.text  # "Hello"
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import conditionals
import loops
import numbering
import placeholders
from collection_registry import CollectionRegistry, default_registry
from context_builder import build_context
from context_map import ContextMap
from diagnostics import Diagnostics
from models import CaseData

logger = logging.getLogger(__name__)

BODY_REGION = "body"


@dataclass
class ResolutionResult:
    text: str
    diagnostics: Diagnostics


@dataclass
class DocumentResult:
    regions: Dict[str, str] = field(default_factory=dict)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    context: Optional[ContextMap] = None

    @property
    def body(self) -> str:
        return self.regions.get(BODY_REGION, "")


class TemplateResolver:
    """Resolves template text against case data."""

    def __init__(
        self,
        registry: Optional[CollectionRegistry] = None,
        numbering_prefix: Optional[str] = None,
    ):
        self.registry = registry if registry is not None else default_registry()
        self.numbering_prefix = numbering_prefix

    # =========================================================================
    # Context
    # =========================================================================

    def build_context(self, case_data: CaseData, diagnostics: Diagnostics) -> ContextMap:
        context = build_context(case_data, self.registry, diagnostics, self.numbering_prefix)
        return context.freeze()

    @staticmethod
    def context_from_mapping(values: Mapping[str, Any]) -> ContextMap:
        """Plain mapping -> frozen context with aliases, no derived placeholders."""
        context = values.copy() if isinstance(values, ContextMap) else ContextMap(values)
        context.register_aliases()
        return context.freeze()

    # =========================================================================
    # Pipeline
    # =========================================================================

    def run_pipeline(
        self,
        text: str,
        context: ContextMap,
        case_data: CaseData,
        diagnostics: Diagnostics,
    ) -> str:
        text = loops.expand(text, self.registry, case_data, diagnostics, context=context)
        text = conditionals.strip(text, context, diagnostics)
        text = placeholders.resolve(text, context, diagnostics)
        return numbering.number(text, prefix=self.numbering_prefix)

    def resolve_text(
        self,
        text: str,
        case_data: Optional[CaseData] = None,
        context: Optional[Mapping[str, Any]] = None,
        correlation_id: Optional[str] = None,
    ) -> ResolutionResult:
        """
        Resolve one piece of text.

        With `context`, that mapping is used as-is (plus aliases); otherwise
        the full context is built from `case_data`.
        """
        diagnostics = Diagnostics(correlation_id=correlation_id) if correlation_id else Diagnostics()
        case_data = case_data or CaseData()
        if context is not None:
            ctx = self.context_from_mapping(context)
        else:
            ctx = self.build_context(case_data, diagnostics)

        output = self.run_pipeline(text or "", ctx, case_data, diagnostics)
        self._log_summary(diagnostics, 1)
        return ResolutionResult(text=output, diagnostics=diagnostics)

    def resolve_document(
        self,
        regions: Mapping[str, str],
        case_data: CaseData,
        correlation_id: Optional[str] = None,
    ) -> DocumentResult:
        """
        Resolve all regions of a document against one shared context.

        regions: region name ("body", "header:0", "footer:1", ...) -> text
        """
        diagnostics = Diagnostics(correlation_id=correlation_id) if correlation_id else Diagnostics()
        context = self.build_context(case_data, diagnostics)

        resolved = {}
        for name, text in regions.items():
            logger.debug("[%s] Resolving region %s", diagnostics.correlation_id, name)
            resolved[name] = self.run_pipeline(text, context, case_data, diagnostics)

        self._log_summary(diagnostics, len(resolved))
        return DocumentResult(regions=resolved, diagnostics=diagnostics, context=context)

    @staticmethod
    def _log_summary(diagnostics: Diagnostics, region_count: int):
        logger.info(
            "[%s] Resolved %d region(s): %d unresolved placeholder(s), %d warning(s)",
            diagnostics.correlation_id,
            region_count,
            diagnostics.unresolved_count,
            len(diagnostics.warnings),
        )


# =========================================================================
# Convenience Functions
# =========================================================================

def resolve(text: str, context: Mapping[str, Any]) -> str:
    """Resolve text against a plain mapping with the default collection registry."""
    return TemplateResolver().resolve_text(text, context=context).text
