"""Per-language extract, map, apply and advance cycles over a selection."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

from .collector import collect_selection
from .errors import (
    BabelframeError,
    ErrorCategory,
    ErrorRecord,
    LanguageApplyError,
    ResourceResolutionError,
    SessionCancelledError,
)
from .fonts import FontLoader
from .layout import PlacementPolicy, find_placement, plan_placements
from .mapper import build_id_mapping, build_identity_mapping
from .scene import SceneGraph, SceneNode
from .structures import Box, LanguageTranslation, NodeKind, TextLeaf, TranslationResult

DEFAULT_GAP = 100


class SessionState(Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    TRANSLATING = "translating"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class AppliedLanguage:
    """Outcome of one successful language cycle."""

    language_code: str
    applied_count: int
    clone_id: Optional[str] = None


@dataclass
class _PlacementState:
    template: Box
    next_y: float


class TranslationSession:
    """Owns the state of one translation run against a captured selection.

    ``start`` captures the selection. When it is exactly one container, that
    container becomes the original that copies are cloned from. Each
    ``apply_translation`` call then runs one language cycle: clone and place,
    or write in place. Failures abort only the current language, and work
    already written is kept.
    """

    def __init__(
        self,
        graph: SceneGraph,
        fonts: FontLoader,
        *,
        gap: float = DEFAULT_GAP,
        placement_policy: PlacementPolicy | None = None,
    ) -> None:
        if gap < 0:
            raise ValueError("Placement gap must not be negative.")
        self.graph = graph
        self.fonts = fonts
        self.gap = gap
        self.placement_policy = placement_policy

        self.state = SessionState.IDLE
        self.selection: List[SceneNode] = []
        self.leaves: List[TextLeaf] = []
        self.original: SceneNode | None = None
        self.original_name = ""
        self.language_index = 0
        self.applied: List[AppliedLanguage] = []
        self.failed_languages: List[str] = []
        self.records: List[ErrorRecord] = []
        self.cancelled = False
        self._placement: _PlacementState | None = None

    @property
    def next_y(self) -> float | None:
        return self._placement.next_y if self._placement else None

    def start(self, selection: Sequence[SceneNode]) -> List[TextLeaf]:
        """Capture the selection and reset all per-run state."""

        if self.cancelled:
            raise SessionCancelledError("The session was cancelled.")

        self.state = SessionState.COLLECTING
        self.selection = list(selection)
        self.leaves = collect_selection(self.selection)
        self.language_index = 0
        self.applied = []
        self.failed_languages = []
        self.records = []

        if len(self.selection) == 1 and self.selection[0].kind is NodeKind.CONTAINER:
            self.original = self.selection[0]
            self.original_name = self.original.name
            template = self.original.box
            self._placement = _PlacementState(
                template=template,
                next_y=find_placement(
                    template, self.graph.siblings_of(self.original), self.gap
                ),
            )
        else:
            self.original = None
            self.original_name = ""
            self._placement = None

        self.state = SessionState.TRANSLATING
        return self.leaves

    async def apply_translation(
        self,
        language_code: str,
        texts: Sequence[TranslationResult],
        *,
        create_copies: bool,
    ) -> AppliedLanguage:
        """Run one language cycle, progressively placing its copy."""

        self._ensure_active()
        if create_copies and self.original is not None:
            policy = self.placement_policy or PlacementPolicy.INCREMENTAL
            (y,) = self._plan(1, policy)
            return await self._apply_copy(language_code, texts, y)
        return await self._apply_in_place(language_code, texts)

    async def apply_batch(
        self,
        translations: Sequence[LanguageTranslation],
        *,
        create_copies: bool,
    ) -> List[AppliedLanguage]:
        """Apply several languages at once.

        With copies, one clone is placed per language and the first failure
        stops the batch. Without copies only the first language is written.
        """

        self._ensure_active()
        if not translations:
            return []
        if not (create_copies and self.original is not None):
            first = translations[0]
            return [await self._apply_in_place(first.language_code, first.texts)]

        policy = self.placement_policy or PlacementPolicy.BATCH
        positions = self._plan(len(translations), policy)
        outcomes: List[AppliedLanguage] = []
        for translation, y in zip(translations, positions):
            outcomes.append(
                await self._apply_copy(translation.language_code, translation.texts, y)
            )
        return outcomes

    def complete(self) -> List[str]:
        """Finish the run and return the codes of languages that failed."""

        if self.state is SessionState.TRANSLATING:
            self.state = (
                SessionState.FAILED if self.failed_languages else SessionState.COMPLETE
            )
        return list(self.failed_languages)

    def cancel(self) -> None:
        """Stop further cycles from starting; work already applied is kept."""

        self.cancelled = True
        self.state = SessionState.CANCELLED

    # --- Internal helpers -------------------------------------------------

    def _ensure_active(self) -> None:
        if self.cancelled:
            raise SessionCancelledError("The session was cancelled.")
        if self.state is not SessionState.TRANSLATING:
            raise BabelframeError("No translation session has been started.")

    def _require_original(self) -> tuple[SceneNode, _PlacementState]:
        if self.original is None or self._placement is None:
            raise BabelframeError("The selection has no single container to copy.")
        return self.original, self._placement

    def _plan(self, count: int, policy: PlacementPolicy) -> List[float]:
        original, placement = self._require_original()
        if policy is PlacementPolicy.BATCH:
            step = placement.template.height + self.gap
            return [placement.next_y + step * index for index in range(count)]
        return plan_placements(
            placement.template,
            self.graph.siblings_of(original),
            count,
            self.gap,
            PlacementPolicy.INCREMENTAL,
        )

    async def _apply_copy(
        self,
        language_code: str,
        texts: Sequence[TranslationResult],
        y: float,
    ) -> AppliedLanguage:
        original, placement = self._require_original()
        clone = original.clone()
        clone.x = original.x
        clone.y = y
        clone.name = f"{self.original_name}_{language_code}"

        placed = clone.box
        placement.template = placed
        placement.next_y = placed.bottom + self.gap

        mapping = build_id_mapping(original, clone, texts)
        applied_count = await self._write(mapping, language_code)
        return self._succeed(language_code, applied_count, clone_id=clone.id)

    async def _apply_in_place(
        self,
        language_code: str,
        texts: Sequence[TranslationResult],
    ) -> AppliedLanguage:
        mapping = build_identity_mapping(self.leaves, texts)
        applied_count = await self._write(mapping, language_code)
        return self._succeed(language_code, applied_count)

    async def _write(self, mapping: Dict[str, str], language_code: str) -> int:
        applied_count = 0
        try:
            for node_id, translated in mapping.items():
                node = self.graph.get_node_by_id(node_id)
                if node is None or node.kind is not NodeKind.TEXT:
                    continue
                await self.fonts.ensure_fonts_loaded(node)
                node.characters = translated
                applied_count += 1
        except ResourceResolutionError as exc:
            raise self._fail(
                language_code, applied_count, exc, ErrorCategory.RESOURCE
            ) from exc
        except Exception as exc:
            raise self._fail(
                language_code, applied_count, exc, ErrorCategory.REINSERTION
            ) from exc
        return applied_count

    def _succeed(
        self,
        language_code: str,
        applied_count: int,
        *,
        clone_id: str | None = None,
    ) -> AppliedLanguage:
        outcome = AppliedLanguage(
            language_code=language_code,
            applied_count=applied_count,
            clone_id=clone_id,
        )
        self.applied.append(outcome)
        self.language_index += 1
        return outcome

    def _fail(
        self,
        language_code: str,
        applied_count: int,
        exc: Exception,
        category: ErrorCategory,
    ) -> LanguageApplyError:
        message = f"Could not apply '{language_code}' translations: {exc}"
        self.records.append(
            ErrorRecord(
                category=category,
                message=message,
                details=f"{applied_count} node(s) written before the failure.",
            )
        )
        self.failed_languages.append(language_code)
        return LanguageApplyError(
            message,
            language_code=language_code,
            applied_count=applied_count,
            category=category,
        )
