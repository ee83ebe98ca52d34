"""Find an existing book matching submitted metadata."""

import logging
from typing import Optional
from uuid import UUID

from src.shared.models import BookMetadata

logger = logging.getLogger(__name__)


class DuplicateDetector:
    """
    Duplicate lookup, strongest signal first:
    1. Exact ISBN match
    2. Title AND author both matching (case-insensitive substring)

    The first strategy that finds a book wins.
    """

    def __init__(self, books):
        """
        Args:
            books: BookRepository (or anything with find_by_isbn /
                find_by_title_author)
        """
        self.books = books

    async def find_duplicate(self, metadata: BookMetadata) -> Optional[UUID]:
        if metadata.isbn:
            book = await self.books.find_by_isbn(metadata.isbn)
            if book:
                logger.info(f"Duplicate found by ISBN {metadata.isbn}: {book.id}")
                return book.id

        if metadata.title and metadata.author:
            book = await self.books.find_by_title_author(metadata.title, metadata.author)
            if book:
                logger.info(f"Duplicate found by title/author '{metadata.title}': {book.id}")
                return book.id

        return None
