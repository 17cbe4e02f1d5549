import io
import unittest
import zipfile

from documind import extraction
from documind.errors import ExtractionFailed, UnsupportedFormat


def _build_text_pdf_bytes(text: str) -> bytes:
    stream = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    output = io.BytesIO()
    output.write(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(output.tell())
        output.write(f"{number} 0 obj\n".encode() + body + b"\nendobj\n")

    xref_offset = output.tell()
    output.write(f"xref\n0 {len(objects) + 1}\n".encode())
    output.write(b"0000000000 65535 f \n")
    for offset in offsets:
        output.write(f"{offset:010d} 00000 n \n".encode())
    output.write(
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_offset}\n%%EOF\n".encode()
    )
    return output.getvalue()


def _build_docx_bytes(paragraphs: list[str], *, include_content_types: bool = True) -> bytes:
    body = "".join(f"<w:p><w:r><w:t>{paragraph}</w:t></w:r></w:p>" for paragraph in paragraphs)
    document_xml = (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'
        f"<w:body>{body}<w:p/></w:body></w:document>"
    )
    payload = io.BytesIO()
    with zipfile.ZipFile(payload, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        if include_content_types:
            archive.writestr("[Content_Types].xml", '<?xml version="1.0"?><Types/>')
        archive.writestr("word/document.xml", document_xml)
    return payload.getvalue()


class TestSupportedFormats(unittest.TestCase):
    def test_txt_extraction_counts_words(self):
        result = extraction.extract_text(b"Quarterly report for the sales team.", "notes.TXT")

        self.assertEqual(result.text, "Quarterly report for the sales team.")
        self.assertEqual(result.metadata.file_type, ".txt")
        self.assertEqual(result.metadata.word_count, 6)
        self.assertEqual(result.metadata.page_count, 0)
        self.assertEqual(result.metadata.file_size, 36)

    def test_txt_extraction_strips_utf8_bom(self):
        result = extraction.extract_text("\ufeffGrüße aus Köln".encode("utf-8"), "greeting.txt")

        self.assertEqual(result.text, "Grüße aus Köln")
        self.assertEqual(result.metadata.word_count, 3)

    def test_docx_extraction_joins_paragraphs(self):
        content = _build_docx_bytes(["First paragraph here.", "Second one."])

        result = extraction.extract_text(content, "memo.docx")

        self.assertEqual(result.text, "First paragraph here.\nSecond one.")
        self.assertEqual(result.metadata.file_type, ".docx")
        self.assertEqual(result.metadata.word_count, 5)
        self.assertEqual(result.warnings, [])

    def test_docx_structural_warning_does_not_fail(self):
        content = _build_docx_bytes(["Body text"], include_content_types=False)

        result = extraction.extract_text(content, "memo.docx")

        self.assertEqual(result.text, "Body text")
        self.assertTrue(any("Content_Types" in warning for warning in result.warnings))

    def test_pdf_extraction_reports_pages_and_text(self):
        content = _build_text_pdf_bytes("Hello PDF world")

        result = extraction.extract_text(content, "scan.pdf")

        self.assertIn("Hello PDF world", result.text)
        self.assertEqual(result.metadata.page_count, 1)
        self.assertEqual(result.metadata.file_type, ".pdf")
        self.assertGreaterEqual(result.metadata.word_count, 1)


class TestExtractionFailures(unittest.TestCase):
    def test_unsupported_extensions_rejected(self):
        for filename in ("image.png", "archive.zip", "legacy.doc", "noextension"):
            with self.subTest(filename=filename):
                with self.assertRaises(UnsupportedFormat):
                    extraction.extract_text(b"data", filename)

    def test_corrupt_pdf_raises_extraction_failed(self):
        with self.assertRaises(ExtractionFailed) as context:
            extraction.extract_text(b"not really a pdf", "broken.pdf")

        self.assertIn("Failed to extract text", context.exception.message)

    def test_docx_without_document_xml_raises(self):
        payload = io.BytesIO()
        with zipfile.ZipFile(payload, mode="w") as archive:
            archive.writestr("word/styles.xml", "<styles/>")

        with self.assertRaises(ExtractionFailed):
            extraction.extract_text(payload.getvalue(), "empty.docx")

    def test_docx_that_is_not_a_zip_raises(self):
        with self.assertRaises(ExtractionFailed):
            extraction.extract_text(b"plain bytes", "fake.docx")


class TestWordCount(unittest.TestCase):
    def test_runs_of_whitespace_split_once(self):
        self.assertEqual(extraction.count_words("one   two\n\nthree\tfour"), 4)

    def test_empty_text_counts_zero_words(self):
        # The naive split counted 1 word for empty input; empty text is 0 words here.
        self.assertEqual(extraction.count_words(""), 0)
        self.assertEqual(extraction.count_words("   \n\t "), 0)


if __name__ == "__main__":
    unittest.main()
