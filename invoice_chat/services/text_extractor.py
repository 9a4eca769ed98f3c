from io import BytesIO
from loguru import logger
import pdfplumber
from .errors import ExtractionError

SUPPORTED_MIME_TYPES = {"application/pdf", "application/octet-stream"}


def get_text_from_document(file_bytes: bytes, mime_type: str = "application/pdf") -> str:
    """
    Extract the visible text of a document as one flat string.

    Pages are read in order and the words of each page are joined with single
    spaces in the order pdfplumber reports them. No layout is reconstructed.
    An empty string is a valid result for a PDF whose pages carry no text.

    Raises:
        ExtractionError: unsupported MIME type, unreadable document, or no pages
    """
    if mime_type not in SUPPORTED_MIME_TYPES:
        raise ExtractionError(f"Unsupported document type: {mime_type}")

    logger.info("Extracting text from document", size=len(file_bytes), mime_type=mime_type)

    try:
        with pdfplumber.open(BytesIO(file_bytes)) as pdf:
            if not pdf.pages:
                raise ExtractionError("Could not extract text: PDF structure not recognized.")
            page_texts = []
            for page in pdf.pages:
                words = page.extract_words()
                page_texts.append(" ".join(word["text"] for word in words))
    except ExtractionError:
        raise
    except Exception as e:
        logger.error("PDF text extraction failed: {}", e)
        raise ExtractionError(f"Could not extract text: {str(e)}") from e

    text = " ".join(t for t in page_texts if t)
    logger.info("Document text extracted", pages=len(page_texts), chars=len(text))
    return text
