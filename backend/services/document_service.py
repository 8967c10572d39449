import io
import re
import base64
import logging
import unicodedata
import fitz  # PyMuPDF
from pptx import Presentation

from models.schemas import UploadedAsset, PDF_MIME, PPTX_MIME

logger = logging.getLogger(__name__)

# Extraction flags: dehyphenate split words across lines and preserve whitespace.
_EXTRACT_FLAGS = fitz.TEXT_PRESERVE_WHITESPACE | fitz.TEXT_DEHYPHENATE

DOCUMENT_MIMES = {PDF_MIME, PPTX_MIME}

# Ligature glyphs some PDF fonts emit instead of plain letters, including the
# Private Use Area slots older LaTeX toolchains use.
_LIGATURE_CHAR_MAP: dict[str, str] = {
    '\ufb00': 'ff',   # LATIN SMALL LIGATURE FF
    '\ufb01': 'fi',
    '\ufb02': 'fl',
    '\ufb03': 'ffi',
    '\ufb04': 'ffl',
    '\uf000': 'ff',   # PUA variants
    '\uf001': 'fi',
    '\uf002': 'fl',
    '\u0000': '',
}


class UnsupportedFileError(ValueError):
    pass


def clean_text(text: str) -> str:
    """
    Normalise extracted document text: expand ligatures, NFKC-normalise,
    strip non-printable control characters (keeps \\t \\n \\r).
    """
    for char, replacement in _LIGATURE_CHAR_MAP.items():
        if char in text:
            text = text.replace(char, replacement)
    text = unicodedata.normalize('NFKC', text)
    return re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)


def extract_pdf_text(data: bytes) -> str:
    """Plain text of every page, pages separated by blank lines."""
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        pages = [clean_text(page.get_text(flags=_EXTRACT_FLAGS)).strip() for page in doc]
    finally:
        doc.close()
    return "\n\n".join(p for p in pages if p)


def extract_pptx_text(data: bytes) -> str:
    """Text frames of every slide, one block per slide."""
    prs = Presentation(io.BytesIO(data))
    slides: list[str] = []
    for i, slide in enumerate(prs.slides):
        texts = [
            shape.text.strip()
            for shape in slide.shapes
            if getattr(shape, "has_text_frame", False) and shape.text and shape.text.strip()
        ]
        if texts:
            slides.append(f"Slide {i + 1}:\n" + clean_text("\n".join(texts)))
    return "\n\n".join(slides)


def _document_marker(name: str, mime_type: str) -> str:
    kind = "PDF" if mime_type == PDF_MIME else "PPTX"
    return f"[Content of {kind}: {name}]"


def build_asset(name: str, mime_type: str, data: bytes) -> UploadedAsset:
    """
    Turns one uploaded file into an UploadedAsset. Images become data URIs;
    PDF and PPTX files are text-extracted. A document with no extractable
    text keeps a `[Content of PDF: name]` marker instead.

    CPU-bound; callers run it in a worker thread.
    """
    if not mime_type.startswith("image/") and mime_type not in DOCUMENT_MIMES:
        raise UnsupportedFileError(f"{name} is not an image, PDF, or PPTX.")

    if mime_type.startswith("image/"):
        encoded = base64.b64encode(data).decode("utf-8")
        return UploadedAsset(
            name=name,
            mimeType=mime_type,
            sizeBytes=len(data),
            inlineDataReference=f"data:{mime_type};base64,{encoded}",
        )

    try:
        text = extract_pdf_text(data) if mime_type == PDF_MIME else extract_pptx_text(data)
    except Exception as e:
        logger.warning(f"Text extraction failed for {name}: {e}")
        text = ""

    if not text.strip():
        text = _document_marker(name, mime_type)
    else:
        logger.info(f"Extracted {len(text)} chars from {name}")

    return UploadedAsset(name=name, mimeType=mime_type, sizeBytes=len(data), extractedText=text)
