"""Document-level conversion failure."""

from __future__ import annotations


class ConversionError(Exception):
    """The page source or a page's content is unreadable beyond recovery.

    ``page_index`` is 0-based, or None when the failure isn't tied to a page
    (e.g. the file can't be opened at all).
    """

    def __init__(self, message: str, page_index: int | None = None):
        super().__init__(message)
        self.message = message
        self.page_index = page_index

    def __str__(self) -> str:
        if self.page_index is None:
            return self.message
        return f"{self.message} (page index {self.page_index})"
