"""Read resume text from a file. PDFs need pymupdf (optional dependency)."""

from pathlib import Path


def extract_text_from_pdf(path: Path) -> str:
    """Extract plain text from a PDF file.

    Raises:
        ImportError: If pymupdf is not installed.
    """
    try:
        import pymupdf
    except ImportError:
        msg = (
            "pymupdf is required for PDF resumes. "
            "Install with: pip install 'careersync[pdf]'"
        )
        raise ImportError(msg) from None

    doc = pymupdf.open(str(path))
    text_parts: list[str] = []
    for page in doc:
        text_parts.append(page.get_text())
    doc.close()

    return "\n".join(text_parts)


def read_resume(path: str | Path) -> str:
    """Return the text of a resume file (.pdf, or anything else read as UTF-8).

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(path)
    if not path.exists():
        msg = f"Resume file not found: {path}"
        raise FileNotFoundError(msg)

    if path.suffix.lower() == ".pdf":
        return extract_text_from_pdf(path)
    return path.read_text(encoding="utf-8")
