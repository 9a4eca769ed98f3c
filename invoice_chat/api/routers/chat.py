from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, StreamingResponse
from loguru import logger

from ...core.config import settings
from ...models.chat import ChatRequest
from ...services.data_stream import DATA_STREAM_HEADERS
from ...services.invoice_pipeline import InvoicePipeline
from ..deps import get_current_user, get_invoice_pipeline

router = APIRouter(prefix="/api/chat", tags=["chat"])

PROCESSING_FAILED = {"error": "Failed to process invoice"}


def _processing_failed() -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=PROCESSING_FAILED)


@router.post("/invoice")
async def process_invoice(
    req: ChatRequest,
    user_id: str = Depends(get_current_user),
    pipeline: InvoicePipeline = Depends(get_invoice_pipeline),
):
    """
    Validate and store an invoice uploaded as a chat attachment.

    The attachment of the last message is downloaded, its text extracted
    and classified by the model. Valid, previously unseen invoices are
    saved. The reply is streamed back as an AI data stream.

    Every processing failure returns 500 with the same generic body; the
    cause is only logged.
    """
    logger.info("Invoice chat request received", chat_id=req.id, user_id=user_id)
    try:
        model = settings.resolve_model(req.selected_chat_model)
        completion = await pipeline.validate_document(req, model)

        try:
            outcome = pipeline.resolve_validation(req, completion)
        except Exception as e:
            logger.error("Error in invoice processing: {}", e)
            return _processing_failed()

        return StreamingResponse(
            pipeline.stream_response(req, outcome, model),
            media_type="text/plain; charset=utf-8",
            headers=DATA_STREAM_HEADERS,
        )
    except Exception as e:
        logger.error("Error in invoice processing: {}", e)
        return _processing_failed()
