"""
End-to-end career guidance pipeline.

    ProfileExtractor -> Embedder -> HybridSearch -> Reranker
    -> Deduplicator -> ContextAssembler -> Generator -> BiasDetector

evaluate() lets input, provider and store errors from the retrieval stages
propagate. Generation failures come back inside the GenerationResult. A
search that finds nothing returns a fallback result without calling the
generator, and high-stakes questions are answered by the safety filter
before retrieval starts.

Bias counters belong to the pipeline's BiasDetector; get_bias_stats() and
reset_stats() expose them.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Optional, Union

from careerrag.bias import BiasDetector, RecommendedItem, extract_recommendations
from careerrag.generate import Generator, GenerationOptions, GenerationResult, GenerationState, check_query
from careerrag.generate.clients import EchoDevClient, OllamaClient, OpenAIClient
from careerrag.generate.retry import ExponentialBackoff
from careerrag.profile import ProfileExtractor, StructuredProfileFields, StudentProfile
from careerrag.search import (
    ContextAssembler,
    ContextBundle,
    Deduplicator,
    Embedder,
    HybridSearch,
    KnowledgeStore,
    Reranker,
    build_embedder,
)

logger = logging.getLogger(__name__)

FALLBACK_RESPONSE = (
    "I couldn't find verified information that matches your question yet. "
    "Some general options to explore with your school counselor: university degrees, "
    "TVET college programmes, learnerships and apprenticeships. Tell me more about the "
    "subjects you enjoy and the careers you are curious about and I'll try again."
    "\n\n---\n\n⚠️ **Verify before you decide:**\n"
    "1. Check with your school counselor\n"
    "2. Visit official websites for current info\n\n"
    "Always confirm with real people."
)


class CareerGuidancePipeline:
    def __init__(
        self,
        store: KnowledgeStore,
        embedder: Embedder,
        generator: Generator,
        extractor: Optional[ProfileExtractor] = None,
        search: Optional[HybridSearch] = None,
        reranker: Optional[Reranker] = None,
        deduplicator: Optional[Deduplicator] = None,
        assembler: Optional[ContextAssembler] = None,
        bias_detector: Optional[BiasDetector] = None,
        search_limit: int = 25,
        safety_filter: bool = True,
        disclaimer_marker: str = "⚠️",
    ):
        self.store = store
        self.embedder = embedder
        self.generator = generator
        self.extractor = extractor or ProfileExtractor()
        self.search = search or HybridSearch(store)
        self.reranker = reranker or Reranker()
        self.deduplicator = deduplicator or Deduplicator()
        self.assembler = assembler or ContextAssembler()
        self.bias_detector = bias_detector or BiasDetector()
        self.search_limit = search_limit
        self.safety_filter = safety_filter
        self.disclaimer_marker = disclaimer_marker

    @classmethod
    def from_settings(cls, store: KnowledgeStore, settings=None, generation_client=None) -> "CareerGuidancePipeline":
        if settings is None:
            from careerrag.settings import settings
        client = generation_client or build_generation_client(settings)
        generator = Generator(
            client,
            options=GenerationOptions(max_retries=settings.GEN_MAX_RETRIES, timeout_ms=settings.GEN_TIMEOUT_MS),
            backoff=ExponentialBackoff(
                settings.BACKOFF_BASE_SECONDS, settings.BACKOFF_FACTOR, settings.BACKOFF_MAX_SECONDS
            ),
            disclaimer_marker=settings.DISCLAIMER_MARKER,
        )
        return cls(
            store=store,
            embedder=build_embedder(settings),
            generator=generator,
            search=HybridSearch(
                store,
                vector_weight=settings.VECTOR_WEIGHT,
                keyword_weight=settings.KEYWORD_WEIGHT,
                parallel=settings.PARALLEL_SEARCH,
            ),
            reranker=Reranker(
                retrieval_weight=settings.RERANK_RETRIEVAL_WEIGHT,
                profile_weight=settings.RERANK_PROFILE_WEIGHT,
            ),
            deduplicator=Deduplicator(settings.DEDUP_THRESHOLD),
            assembler=ContextAssembler(settings.MAX_CONTEXT_TOKENS),
            bias_detector=BiasDetector(
                teaching_threshold=settings.TEACHING_BIAS_THRESHOLD,
                dominance_threshold=settings.CATEGORY_DOMINANCE_THRESHOLD,
                min_items=settings.MIN_ITEMS_FOR_ANALYSIS,
            ),
            search_limit=settings.SEARCH_LIMIT,
            safety_filter=settings.SAFETY_FILTER,
            disclaimer_marker=settings.DISCLAIMER_MARKER,
        )

    # -------------------------
    # Entry points
    # -------------------------
    def evaluate(
        self,
        query: str,
        profile_fields: Optional[Union[StructuredProfileFields, dict]] = None,
    ) -> GenerationResult:
        profile = self.extractor.extract(query, profile_fields)

        if self.safety_filter:
            match = check_query(query)
            if match is not None:
                logger.warning(f"Safety filter triggered: {match.category}")
                return GenerationResult(
                    success=True,
                    response=match.response,
                    footer_present=self.disclaimer_marker in match.response,
                    model="safety-filter",
                    metadata={"safety_category": match.category},
                )

        embedding = self.embedder.embed(query)
        candidates = self.search.search(query, embedding, self.search_limit)
        if not candidates:
            logger.warning("No knowledge matched the query; returning fallback guidance")
            return self._fallback(profile)

        reranked = self.reranker.rerank(candidates, profile)
        unique = self.deduplicator.deduplicate(reranked)
        bundle = self.assembler.assemble(unique, profile)

        result = self.generator.generate(query, bundle, profile)
        report = self._bias_report(result, bundle, profile)
        return replace(result, bias_report=report, metadata=self._metadata(bundle, profile, len(candidates)))

    def get_bias_stats(self) -> Dict[str, int]:
        return self.bias_detector.get_bias_stats()

    def reset_stats(self) -> None:
        self.bias_detector.reset_stats()

    # -------------------------
    # Helpers
    # -------------------------
    def _bias_report(self, result: GenerationResult, bundle: ContextBundle, profile: StudentProfile):
        items = extract_recommendations(result.response) if result.success else []
        source = "response"
        if len(items) < self.bias_detector.min_items:
            # too little to judge in the prose; judge what the model was shown
            items = [RecommendedItem.from_candidate(c) for c in bundle.candidates]
            source = "context"
        report = self.bias_detector.analyze(items, subjects=profile.subjects, source=source)
        if report.has_bias:
            logger.warning(
                f"Bias in recommendations ({source}): severity {report.severity:.2f}, "
                f"dominant {report.dominant_category}"
            )
        return report

    def _fallback(self, profile: StudentProfile) -> GenerationResult:
        return GenerationResult(
            success=False,
            response=FALLBACK_RESPONSE,
            error="no relevant knowledge found",
            footer_present=self.disclaimer_marker in FALLBACK_RESPONSE,
            model="fallback",
            states=(GenerationState.PENDING,),
            fallback=True,
            metadata={"chunk_ids": [], "grade": profile.grade},
        )

    @staticmethod
    def _metadata(bundle: ContextBundle, profile: StudentProfile, retrieved: int) -> dict:
        aps = profile.aps
        return {
            "retrieved": retrieved,
            "chunk_ids": bundle.ids,
            "sources": bundle.sources,
            "deduplicated": bundle.total_input,
            "token_count": bundle.token_count,
            "truncated_ids": sorted(bundle.truncated_ids),
            "frameworks": [f.name for f in bundle.frameworks],
            "grade": profile.grade,
            "priority_modules": list(profile.priority_modules),
            "aps": aps.points if aps else None,
        }


def build_generation_client(settings):
    kind = settings.GEN_PROVIDER.lower()
    if kind == "ollama":
        return OllamaClient(model=settings.GEN_MODEL, host=settings.OLLAMA_HOST)
    if kind == "openai":
        return OpenAIClient(model=settings.GEN_MODEL, api_key=settings.OPENAI_API_KEY)
    if kind == "echo":
        return EchoDevClient()
    raise ValueError(f"unknown GEN_PROVIDER: {settings.GEN_PROVIDER}")
