"""Reshaping of annotation results for the caller."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from annotsearch.core.logging import get_logger
from annotsearch.search.types import Annotation, AnnotationResult, Page

if TYPE_CHECKING:
    from annotsearch.store.protocol import PageLookup

logger = get_logger(__name__)


async def group_by_page(
    annotations: Sequence[Annotation],
    max_per_page: int,
    page_lookup: PageLookup,
) -> list[Page]:
    """Group annotations under the pages they belong to.

    Each page keeps the first ``max_per_page`` annotations in arrival order.
    Pages are returned in the order ``page_lookup`` returns them; pages it
    does not return are dropped together with their annotations.

    Args:
        annotations: Enriched annotations in result order.
        max_per_page: Cap on annotations attached to a single page.
        page_lookup: Resolves page urls to pages.

    Returns:
        Pages carrying their annotations.
    """
    by_page: dict[str, list[Annotation]] = {}
    for annotation in annotations:
        page_annotations = by_page.setdefault(annotation.page_url, [])
        if len(page_annotations) < max_per_page:
            page_annotations.append(annotation)

    pages = await page_lookup(list(by_page))

    grouped = [
        page.model_copy(update={"annotations": by_page[page.url]})
        for page in pages
        if page.url in by_page
    ]
    if len(grouped) < len(by_page):
        logger.debug("pages_unresolved", requested=len(by_page), resolved=len(grouped))
    return grouped


def project_annotations(annotations: Sequence[Annotation]) -> list[AnnotationResult]:
    """Project annotations to their public result shape."""
    return [AnnotationResult.from_annotation(annotation) for annotation in annotations]
