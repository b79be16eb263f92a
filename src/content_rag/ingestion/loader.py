"""Document loaders — thin wrappers around LangChain document loaders."""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import TYPE_CHECKING, Any

from langchain_community.document_loaders import PyPDFLoader, TextLoader

from content_rag.models import DocumentInput

if TYPE_CHECKING:
    from langchain_core.documents import Document

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = {".txt", ".md", ".markdown", ".rst", ".csv", ".json"}


def load_pages(path: str | Path) -> list[Document]:
    """Load *path* as LangChain ``Document`` objects (one per PDF page).

    Raises
    ------
    ValueError
        If the file extension is not supported.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".pdf":
        return PyPDFLoader(str(path)).load()
    if suffix in TEXT_SUFFIXES:
        return TextLoader(str(path), encoding="utf-8").load()
    raise ValueError(f"Unsupported document type: {suffix or path.name}")


def load_document(path: str | Path, user_id: str, **fields: Any) -> DocumentInput:
    """Extract the text of the file at *path* into a :class:`DocumentInput`.

    Parameters
    ----------
    path:
        A ``.pdf`` or plain-text / markdown file.
    user_id:
        Owner of the resulting document.
    **fields:
        Extra ``DocumentInput`` fields (``categories``, ``tags``, ``title`` …).
    """
    path = Path(path)
    pages = load_pages(path)
    mime_type = mimetypes.guess_type(path.name)[0] or "text/plain"
    logger.info("Loaded %s: %d page(s)", path.name, len(pages))

    return DocumentInput(
        user_id=user_id,
        content="\n\n".join(page.page_content for page in pages),
        title=fields.pop("title", "") or path.stem,
        source=fields.pop("source", str(path)),
        file_name=path.name,
        file_type=mime_type,
        file_size=path.stat().st_size,
        page_count=len(pages) if path.suffix.lower() == ".pdf" else None,
        **fields,
    )
