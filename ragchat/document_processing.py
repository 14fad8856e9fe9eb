"""Document loading and text chunking functionality."""

from bisect import bisect_right
from dataclasses import replace
from pathlib import Path

import pypdf

from .config import config
from .models import DocumentChunk

logger = config.get_logger(__name__)

PAGE_SEPARATOR = "\n"


class DocumentLoader:
    """Handles loading of PDF and plain-text documents as page sequences."""

    TEXT_SUFFIXES = frozenset({".txt", ".md"})

    @staticmethod
    def load_pdf(file_path: Path) -> list[str]:
        """Load the text of every page of a PDF file.

        Returns:
            One string per page, in page order.
        """
        try:
            with file_path.open("rb") as file:
                pdf_reader = pypdf.PdfReader(file)
                pages = [page.extract_text() or "" for page in pdf_reader.pages]
            logger.info("Loaded %d pages from %s", len(pages), file_path.name)
        except Exception:
            logger.exception("Error loading PDF %s", file_path)
            raise
        else:
            return pages

    @staticmethod
    def load_txt(file_path: Path) -> list[str]:
        """Load a text file as a single page.

        Returns:
            A one-element list holding the file content.
        """
        try:
            with file_path.open(encoding="utf-8") as file:
                text = file.read()
            logger.info("Successfully loaded text file %s", file_path.name)
        except Exception:
            logger.exception("Error loading text file %s", file_path)
            raise
        else:
            return [text]

    @classmethod
    def load_pages(cls, file_path: Path) -> list[str]:
        """Load document pages based on file extension.

        Args:
            file_path: Path to the document file.

        Returns:
            The ordered page texts of the document.

        Raises:
            ValueError: If the file type is not supported.
        """
        file_ext = file_path.suffix.lower()
        if file_ext == ".pdf":
            return cls.load_pdf(file_path)
        if file_ext in cls.TEXT_SUFFIXES:
            return cls.load_txt(file_path)
        msg = f"Unsupported file type: {file_ext}"
        raise ValueError(msg)


class TextChunker:
    """Sliding-window chunker with a fixed window and overlap."""

    def __init__(self, chunk_size: int = 1000, overlap: int = 200) -> None:
        """Initialize the TextChunker with chunk size and overlap.

        Args:
            chunk_size: Window length in characters.
            overlap: Characters shared by consecutive chunks.

        Raises:
            ValueError: If the window cannot advance with these settings.
        """
        if chunk_size <= 0:
            msg = f"chunk_size must be positive, got {chunk_size}"
            raise ValueError(msg)
        if not 0 <= overlap < chunk_size:
            msg = f"overlap must be in [0, {chunk_size}), got {overlap}"
            raise ValueError(msg)
        self.chunk_size = chunk_size
        self.overlap = overlap

    @property
    def step(self) -> int:
        return self.chunk_size - self.overlap

    def chunk_pages(
        self, pages: list[str], source: str = "document"
    ) -> list[DocumentChunk]:
        """Join pages and split the result into overlapping chunks.

        Each chunk records the 1-based page on which it starts.

        Returns:
            Ordered chunks covering the whole document.
        """
        page_starts: list[int] = []
        offset = 0
        for page in pages:
            page_starts.append(offset)
            offset += len(page) + len(PAGE_SEPARATOR)

        text = PAGE_SEPARATOR.join(pages)
        chunks = self.chunk_text(text, source=source)
        if not page_starts:
            return chunks

        return [
            replace(
                chunk,
                metadata={
                    **chunk.metadata,
                    "page": bisect_right(page_starts, chunk.source_offset),
                },
            )
            for chunk in chunks
        ]

    def chunk_text(self, text: str, source: str = "document") -> list[DocumentChunk]:
        """Split text into overlapping chunks.

        Returns:
            A list of DocumentChunk objects representing the text chunks.
        """
        chunks: list[DocumentChunk] = []
        text_length = len(text)
        start = 0

        while start < text_length:
            end = min(start + self.chunk_size, text_length)
            window = text[start:end]

            if window.strip():  # Only add non-empty chunks
                chunks.append(
                    DocumentChunk(
                        text=window,
                        source_offset=start,
                        length=len(window),
                        metadata={
                            "source": source,
                            "chunk_index": len(chunks),
                        },
                    )
                )

            if end == text_length:
                break
            start += self.step

        logger.info("Text split into %d chunks", len(chunks))
        return chunks
