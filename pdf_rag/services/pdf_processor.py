"""
PDF processing service for extracting page text from uploaded PDF bytes.
"""

import PyPDF2
from io import BytesIO
from typing import List
from langchain_core.documents import Document

from ..errors import ParseFailure, UnsupportedFormat
from ..utils import (
    measure_time,
    create_document_metadata,
    clean_text,
    log_processing_info,
    handle_processing_error
)
import logging

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"


class PDFProcessor:
    """Service for turning PDF bytes into one Document per page."""

    def __init__(self):
        """Initialize the PDF processor."""
        self.accepted_mime_type = PDF_MIME_TYPE

    def validate_mime_type(self, declared_mime_type: str, filename: str = "") -> None:
        """
        Reject anything whose declared MIME type is not the accepted PDF type.

        The file extension and the bytes themselves are not consulted.
        """
        if declared_mime_type != self.accepted_mime_type:
            logger.warning(f"Rejected file '{filename}' with unsupported mime type: {declared_mime_type}")
            raise UnsupportedFormat(
                "Only PDF files are allowed",
                details=f"Unsupported file type: {declared_mime_type}"
            )

    def _open_reader(self, file_content: bytes, filename: str) -> PyPDF2.PdfReader:
        if not file_content:
            raise ParseFailure(f"Error processing PDF: {filename} is empty")

        try:
            pdf_reader = PyPDF2.PdfReader(BytesIO(file_content))
            if pdf_reader.is_encrypted:
                pdf_reader.decrypt("")
            # Touch the page tree so structural damage surfaces here.
            len(pdf_reader.pages)
            return pdf_reader
        except Exception as e:
            error_info = handle_processing_error(
                "pdf_open",
                e,
                {"filename": filename, "file_size": len(file_content)}
            )
            raise ParseFailure(
                f"Error processing PDF: could not parse {filename}",
                details=error_info["error_message"]
            ) from e

    @measure_time
    def ingest(self, file_content: bytes, declared_mime_type: str, filename: str = "document.pdf") -> List[Document]:
        """
        Extract text from PDF file content.

        Args:
            file_content: PDF file content as bytes
            declared_mime_type: MIME type declared by the client
            filename: Name of the PDF file, used as the source label

        Returns:
            List of Document objects, one per page with text

        Raises:
            UnsupportedFormat: the declared MIME type is not PDF
            ParseFailure: the bytes are not a readable PDF or contain no text
        """
        self.validate_mime_type(declared_mime_type, filename)

        pdf_reader = self._open_reader(file_content, filename)
        total_pages = len(pdf_reader.pages)

        log_processing_info("PDF extraction started", {
            "filename": filename,
            "total_pages": total_pages,
            "file_size": len(file_content)
        })

        documents = []
        for page_num, page in enumerate(pdf_reader.pages):
            try:
                page_text = page.extract_text()
            except Exception as page_error:
                error_info = handle_processing_error(
                    "page_extraction",
                    page_error,
                    {"filename": filename, "page": page_num + 1}
                )
                logger.warning(f"Skipping page {page_num + 1}: {error_info}")
                continue

            cleaned_text = clean_text(page_text)
            if not cleaned_text:
                continue

            documents.append(Document(
                page_content=cleaned_text,
                metadata=create_document_metadata(
                    filename=filename,
                    page_num=page_num + 1,
                    total_pages=total_pages
                )
            ))

        if not documents:
            raise ParseFailure(
                f"Error processing PDF: no text could be extracted from {filename}",
                details={"total_pages": total_pages}
            )

        log_processing_info("PDF extraction completed", {
            "filename": filename,
            "documents_created": len(documents),
            "total_pages": total_pages
        })

        return documents
