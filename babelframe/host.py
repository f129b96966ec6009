"""Plugin host: selection reporting and message dispatch onto a session."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence

from .collector import collect_selection
from .errors import BabelframeError, UnknownMessageError
from .messages import (
    ApplySingleTranslation,
    ApplyTranslations,
    Cancel,
    Error,
    Extracted,
    InboundMessage,
    NoSelection,
    NoText,
    OutboundMessage,
    SessionComplete,
    StartSession,
    Success,
    decode_message,
)
from .scene import SceneGraph
from .session import TranslationSession
from .structures import NodeKind

PostMessage = Callable[[OutboundMessage], None]


class PluginHost:
    """Receives caller messages and reports back through ``post``."""

    def __init__(
        self,
        *,
        graph: SceneGraph,
        session: TranslationSession,
        post: PostMessage,
    ) -> None:
        self.graph = graph
        self.session = session
        self.post = post
        self.closed = False

    def select(self, node_ids: Sequence[str]) -> OutboundMessage:
        self.graph.select(node_ids)
        return self.handle_selection_change()

    def handle_selection_change(self) -> OutboundMessage:
        """Report the text found in the current selection."""

        selection = self.graph.selection
        if not selection:
            return self._post(NoSelection())

        container_id = None
        container_name = None
        if len(selection) == 1 and selection[0].kind is NodeKind.CONTAINER:
            container_id = selection[0].id
            container_name = selection[0].name

        texts = collect_selection(selection)
        if not texts:
            return self._post(NoText())
        return self._post(
            Extracted(
                texts=texts,
                container_id=container_id,
                container_name=container_name,
            )
        )

    async def handle_payload(self, payload: Mapping[str, Any]) -> None:
        """Decode a raw payload and dispatch it."""

        try:
            message = decode_message(payload)
        except UnknownMessageError as exc:
            self._post(Error(message=str(exc)))
            return
        await self.handle(message)  # type: ignore[arg-type]

    async def handle(self, message: InboundMessage) -> None:
        """Dispatch one inbound message; failures are posted as ``Error``."""

        if self.closed:
            self._post(Error(message="The plugin session has been closed."))
            return
        try:
            await self._dispatch(message)
        except BabelframeError as exc:
            self._post(Error(message=str(exc) or type(exc).__name__))

    async def _dispatch(self, message: InboundMessage) -> None:
        if isinstance(message, StartSession):
            self.session.start(self.graph.selection)
        elif isinstance(message, ApplySingleTranslation):
            await self.session.apply_translation(
                message.translation.language_code,
                message.translation.texts,
                create_copies=message.create_copies,
            )
        elif isinstance(message, ApplyTranslations):
            await self.session.apply_batch(
                message.translations,
                create_copies=message.create_copies,
            )
            self._post(Success())
        elif isinstance(message, SessionComplete):
            self.session.complete()
            self._post(Success())
        elif isinstance(message, Cancel):
            self.session.cancel()
            self.closed = True
        else:
            raise UnknownMessageError(
                f"Cannot handle message of type {type(message).__name__}."
            )

    def _post(self, message: OutboundMessage) -> OutboundMessage:
        self.post(message)
        return message
