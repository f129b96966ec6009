"""High-level orchestration of a translation run over a scene file."""

from __future__ import annotations

import asyncio
import pathlib
import time
from dataclasses import dataclass, field
from typing import Any, List, Sequence

from .errors import (
    BabelframeError,
    ErrorCategory,
    ErrorRecord,
    OverwriteRefusedError,
    TranslationProviderError,
)
from .fonts import FontLoader, FontRegistry
from .host import PluginHost
from .languages import Language, resolve_language
from .layout import PlacementPolicy
from .messages import (
    ApplySingleTranslation,
    ApplyTranslations,
    Cancel,
    Error,
    Extracted,
    InboundMessage,
    NoSelection,
    OutboundMessage,
    SessionComplete,
    StartSession,
)
from .providers import DEFAULT_CONTEXT, TranslationProvider, build_provider
from .scene import SceneGraph, load_scene, save_scene
from .session import DEFAULT_GAP, TranslationSession
from .structures import LanguageTranslation, NodeKind


@dataclass
class TranslationSummary:
    """Report returned after processing a scene."""

    input_path: pathlib.Path
    output_path: pathlib.Path
    selection_ids: List[str]
    container_name: str | None
    total_texts: int
    languages: List[str]
    applied_languages: List[str]
    failed_languages: List[str]
    copies_created: int
    create_copies: bool
    batch_mode: bool
    provider_name: str
    model: str | None
    elapsed_seconds: float
    error_messages: List[str] = field(default_factory=list)

    @property
    def total_errors(self) -> int:
        return len(self.error_messages)


class TranslationRunner:
    """Plays the caller's side of the host protocol for a scene on disk.

    The runner loads the scene, reports the selection, starts a session and
    then translates and applies each language in turn. A provider failure
    skips that language only. Host errors are collected from the posted
    messages and the scene is saved with whatever was applied.
    """

    def __init__(
        self,
        *,
        input_path: pathlib.Path,
        output_path: pathlib.Path,
        languages: Sequence[str],
        frame_id: str | None = None,
        create_copies: bool = True,
        batch_mode: bool = False,
        provider_name: str | None = None,
        model: str | None = None,
        context: str = DEFAULT_CONTEXT,
        gap: float = DEFAULT_GAP,
        placement_policy: PlacementPolicy | None = None,
        verbose: bool = False,
        provider_debug: bool = False,
        settings: Any = None,
        provider: TranslationProvider | None = None,
        fonts: FontLoader | None = None,
    ) -> None:
        self.input_path = input_path
        self.output_path = output_path
        self.languages = list(languages)
        self.frame_id = frame_id
        self.create_copies = create_copies
        self.batch_mode = batch_mode
        self.provider_name = provider_name
        self.model = model
        self.context = context
        self.gap = gap
        self.placement_policy = placement_policy
        self.verbose = verbose
        self.provider_debug = provider_debug
        self.settings = settings
        self.provider = provider
        self.fonts = fonts

        self.outbox: List[OutboundMessage] = []
        self.records: List[ErrorRecord] = []

    def run(self) -> TranslationSummary:
        return asyncio.run(self.run_async())

    async def run_async(self) -> TranslationSummary:
        start_time = time.time()
        self.outbox = []
        self.records = []

        languages = [resolve_language(value) for value in self.languages]
        graph = load_scene(self.input_path)
        self._select(graph)

        session = TranslationSession(
            graph,
            self.fonts or FontRegistry(),
            gap=self.gap,
            placement_policy=self.placement_policy,
        )
        host = PluginHost(graph=graph, session=session, post=self.outbox.append)

        report = host.handle_selection_change()
        if isinstance(report, NoSelection):
            raise BabelframeError("Nothing is selected. Pass --frame with a node id.")
        if not isinstance(report, Extracted):
            raise BabelframeError("No text found in the selection.")
        if self.verbose:
            print(
                f"Found {len(report.texts)} text layers in "
                f"{report.container_name or 'the selection'}."
            )

        provider = self.provider or build_provider(
            self.provider_name,
            settings=self.settings,
            debug=self.provider_debug,
        )

        provider_failures: List[str] = []
        pending: List[LanguageTranslation] = []
        try:
            await self._send(
                host,
                StartSession(
                    total_languages=len(languages),
                    create_copies=self.create_copies,
                ),
            )
            for index, language in enumerate(languages):
                if session.cancelled:
                    break
                translation = self._translate(
                    provider, report, language, index, len(languages)
                )
                if translation is None:
                    provider_failures.append(language.code)
                    continue
                if self.batch_mode:
                    pending.append(translation)
                    continue
                await self._send(
                    host,
                    ApplySingleTranslation(
                        translation=translation,
                        create_copies=self.create_copies,
                        index=index,
                    ),
                )
            if pending:
                await self._send(
                    host,
                    ApplyTranslations(
                        translations=pending,
                        create_copies=self.create_copies,
                    ),
                )
            await self._send(host, SessionComplete())
        except asyncio.CancelledError:
            await host.handle(Cancel())
            raise

        save_scene(graph, self.output_path)

        applied = [outcome.language_code for outcome in session.applied]
        return TranslationSummary(
            input_path=self.input_path,
            output_path=self.output_path,
            selection_ids=[node.id for node in graph.selection],
            container_name=report.container_name,
            total_texts=len(report.texts),
            languages=[language.code for language in languages],
            applied_languages=applied,
            failed_languages=provider_failures + session.failed_languages,
            copies_created=sum(1 for outcome in session.applied if outcome.clone_id),
            create_copies=self.create_copies,
            batch_mode=self.batch_mode,
            provider_name=self.provider_name or "openai",
            model=self.model,
            elapsed_seconds=time.time() - start_time,
            error_messages=[record.message for record in self.records],
        )

    def _select(self, graph: SceneGraph) -> None:
        if self.frame_id:
            graph.select([self.frame_id])
            return
        if graph.selection:
            return
        page = graph.current_page
        if page is None:
            return
        for child in page.children:
            if child.kind is NodeKind.CONTAINER:
                graph.select([child.id])
                return

    def _translate(
        self,
        provider: TranslationProvider,
        report: Extracted,
        language: Language,
        index: int,
        total: int,
    ) -> LanguageTranslation | None:
        if self.verbose:
            print(f"Translating to {language.name}... ({index + 1}/{total})")
        try:
            texts = provider.translate(
                report.texts,
                target_language=language.name,
                context=self.context,
                model=self.model,
            )
        except TranslationProviderError as exc:
            self.records.append(
                ErrorRecord(
                    category=ErrorCategory.TRANSLATION,
                    message=f"Could not translate to {language.name}. {exc}",
                )
            )
            return None
        return LanguageTranslation(
            language=language.name,
            language_code=language.code,
            texts=texts,
        )

    async def _send(self, host: PluginHost, message: InboundMessage) -> None:
        """Send one message and record any error the host posts in reply."""

        seen = len(self.outbox)
        await host.handle(message)
        for reply in self.outbox[seen:]:
            if isinstance(reply, Error):
                self.records.append(
                    ErrorRecord(category=ErrorCategory.REINSERTION, message=reply.message)
                )
                if self.verbose:
                    print(f"Error: {reply.message}")


def validate_paths(
    input_path: pathlib.Path,
    output_path: pathlib.Path,
    force_overwrite: bool,
) -> None:
    """Validate input/output path combinations and overwrite policy."""

    if not input_path.exists():
        raise FileNotFoundError(
            "Input file not found. Please provide a readable scene .json file."
        )
    if not input_path.is_file():
        raise BabelframeError("Input path must be a file.")

    if input_path.resolve() == output_path.resolve():
        raise OverwriteRefusedError(
            "The output path matches the input scene. Refusing to overwrite the source file."
        )

    if output_path.exists() and not force_overwrite:
        raise OverwriteRefusedError(
            "The output file already exists. Rename it or use the overwrite flag."
        )
