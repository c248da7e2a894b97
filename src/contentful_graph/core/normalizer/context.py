"""State shared by every normalizer during one sync pass. Read-only."""

from dataclasses import dataclass, field

from loguru import logger

from contentful_graph.config import SourceOptions
from contentful_graph.core.identity import (
    DigestFactory,
    IdMaker,
    NodeIdFactory,
    create_content_digest,
    create_node_id,
)
from contentful_graph.core.locales import build_fallback_chain
from contentful_graph.core.references import ReferenceIndex
from contentful_graph.models.content import Locale
from contentful_graph.protocols import NodeStoreProtocol


@dataclass(frozen=True)
class NormalizeContext:
    space_id: str
    locales: tuple[Locale, ...]
    default_locale: str
    index: ReferenceIndex
    store: NodeStoreProtocol
    options: SourceOptions = field(default_factory=SourceOptions)
    create_node_id: NodeIdFactory = create_node_id
    create_content_digest: DigestFactory = create_content_digest

    @property
    def fallback_chain(self) -> dict[str, str | None]:
        return build_fallback_chain(self.locales)

    def id_maker(self, locale: Locale) -> IdMaker:
        return IdMaker(
            current_locale=locale.code,
            default_locale=self.default_locale,
            create_node_id=self.create_node_id,
        )

    def is_current(self, node_id: str, digest: str) -> bool:
        """Check if the store already holds ``node_id`` at ``digest``.

        A digest match is the only reason to skip rebuilding a node.
        """
        existing = self.store.get_node(node_id)
        if existing is not None and existing.content_digest == digest:
            logger.debug("Node {} unchanged at digest {!r}", node_id, digest)
            return True
        return False
