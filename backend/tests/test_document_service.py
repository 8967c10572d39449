import io
import base64
import fitz
import pytest
from pptx import Presentation

from models.schemas import PDF_MIME, PPTX_MIME
from services import document_service


def _pdf_bytes(*pages: str) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def _pptx_bytes(title: str, body: str) -> bytes:
    prs = Presentation()
    slide = prs.slides.add_slide(prs.slide_layouts[1])
    slide.shapes.title.text = title
    slide.placeholders[1].text = body
    buf = io.BytesIO()
    prs.save(buf)
    return buf.getvalue()


def test_image_becomes_data_uri():
    asset = document_service.build_asset("photo.png", "image/png", b"\x89PNG")

    assert asset.inlineDataReference == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()
    assert asset.extractedText is None
    assert asset.sizeBytes == 4


def test_pdf_text_is_extracted_per_page():
    asset = document_service.build_asset("notes.pdf", PDF_MIME, _pdf_bytes("Ohm's law", "Kirchhoff rules"))

    assert "Ohm's law" in asset.extractedText
    assert "Kirchhoff rules" in asset.extractedText
    assert asset.inlineDataReference is None


def test_pptx_text_is_extracted_per_slide():
    asset = document_service.build_asset("deck.pptx", PPTX_MIME, _pptx_bytes("Thermodynamics", "Entropy increases"))

    assert asset.extractedText.startswith("Slide 1:")
    assert "Thermodynamics" in asset.extractedText
    assert "Entropy increases" in asset.extractedText


def test_unreadable_document_keeps_a_marker():
    asset = document_service.build_asset("broken.pdf", PDF_MIME, b"not a pdf")

    assert asset.extractedText == "[Content of PDF: broken.pdf]"


def test_blank_pdf_keeps_a_marker():
    asset = document_service.build_asset("scan.pdf", PDF_MIME, _pdf_bytes(""))

    assert asset.extractedText == "[Content of PDF: scan.pdf]"


def test_unsupported_type_is_rejected():
    with pytest.raises(document_service.UnsupportedFileError):
        document_service.build_asset("notes.txt", "text/plain", b"hello")


def test_clean_text_expands_ligatures_and_strips_controls():
    assert document_service.clean_text("ﬁnal\x07 eﬀort") == "final effort"
