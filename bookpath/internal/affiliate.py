"""
Affiliate purchase links for the books on the returned page.
Link building is best effort: any failure leaves `affiliate_url` empty.
"""

import asyncio
from typing import Protocol, Sequence
from urllib.parse import quote_plus

from bookpath.internal.env_settings import AffiliateSettings
from bookpath.internal.errors import EnrichmentError
from bookpath.internal.models import CanonicalBook
from bookpath.util.log import logger


class LinkBuilder(Protocol):
    async def build_link(self, title: str, authors: Sequence[str]) -> str | None: ...


class AmazonLinkBuilder:
    """Amazon search links tagged with the associate id."""

    def __init__(self, associate_tag: str | None, domain: str = "amazon.de"):
        self.associate_tag = associate_tag
        self.domain = domain
        if not associate_tag:
            logger.warning(
                "Amazon associate tag not configured. Affiliate links will not be generated."
            )

    @classmethod
    def from_settings(cls, settings: AffiliateSettings) -> "AmazonLinkBuilder":
        return cls(settings.associate_tag, settings.domain)

    def is_configured(self) -> bool:
        return bool(self.associate_tag)

    async def build_link(self, title: str, authors: Sequence[str]) -> str | None:
        if not self.associate_tag:
            return None
        if not title.strip():
            raise EnrichmentError("A title is required to build an affiliate link")

        search = title.strip()
        if authors:
            search = f"{search} {authors[0]}"
        return f"https://{self.domain}/s?k={quote_plus(search)}&tag={quote_plus(self.associate_tag)}"


async def _link_for(link_builder: LinkBuilder, book: CanonicalBook) -> str | None:
    if book.affiliate_url:
        return book.affiliate_url
    try:
        return await link_builder.build_link(book.title, book.authors)
    except Exception as e:
        logger.warning(
            "Failed to build affiliate link",
            title=book.title,
            error=str(e),
        )
        return None


async def add_affiliate_links(
    books: Sequence[CanonicalBook],
    link_builder: LinkBuilder,
) -> list[CanonicalBook]:
    """Only call this with the final page, it does one lookup per book."""
    if not books:
        return []

    links = await asyncio.gather(*(_link_for(link_builder, book) for book in books))
    enriched = [
        book.model_copy(update={"affiliate_url": link})
        for book, link in zip(books, links)
    ]
    logger.debug(
        "Added affiliate links",
        book_count=len(enriched),
        links_generated=sum(1 for link in links if link),
    )
    return enriched
