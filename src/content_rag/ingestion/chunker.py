"""Text chunking strategies."""

from __future__ import annotations

from langchain_text_splitters import MarkdownTextSplitter


def split_markdown(
    text: str,
    chunk_size: int = 1000,
    chunk_overlap: int = 200,
) -> list[str]:
    """Split *text* along markdown / paragraph boundaries.

    Parameters
    ----------
    text:
        Normalised text to split.
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Number of overlapping characters between consecutive chunks.

    Returns
    -------
    list[str]
        Ordered chunks; empty when *text* is blank.
    """
    if chunk_overlap >= chunk_size:
        raise ValueError(
            f"chunk_overlap ({chunk_overlap}) must be < chunk_size ({chunk_size})"
        )
    if not text.strip():
        return []
    splitter = MarkdownTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
    )
    return splitter.split_text(text)
