"""HTTP routes: chat, document ingestion, vector store setup and Slack diagnostics."""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from ..models import ChatRequest, Document, IngestRequest, IngestResponse
from ..services import Services
from ..slack.timeframes import validate_timeframe
from ..utils.errors import InvalidRequest
from ..utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api")

SLACK_TEST_MODES = ("lunch", "update", "report", "channel")


def get_services(request: Request) -> Services:
    return request.app.state.services


@router.post("/chat", tags=["Chat"])
async def chat(body: ChatRequest, services: Services = Depends(get_services)) -> JSONResponse:
    """Answer a chat message, optionally grounded in previously ingested documents.

    Returns `{content, functionCall?}`; errors are rendered as `{error}` by the
    application's exception handlers.
    """
    logger.info(
        "Processing chat request",
        extra={"extra_fields": {
            "message_length": len(body.message),
            "files": ",".join(f.id for f in body.files),
        }},
    )
    response = await services.chat.handle(body.message, body.files)
    return JSONResponse(content=response.to_payload())


@router.post("/process-document", tags=["Documents"])
async def process_document(body: IngestRequest, services: Services = Depends(get_services)) -> IngestResponse:
    """Chunk, embed and store a document's text under its client-generated id."""
    if not body.file_id or not body.content:
        raise InvalidRequest("File ID and content are required")

    document = Document(
        id=body.file_id,
        name=body.name or body.file_id,
        mime_type=body.mime_type,
        size_bytes=len(body.content.encode("utf-8")),
    )
    logger.info(
        f"Processing document {document.name}",
        extra={"extra_fields": document.model_dump(by_alias=True)},
    )

    chunks = await services.ingestor.ingest(document.id, body.content, name=body.name)
    return IngestResponse(
        success=True,
        message=f"Document processed and stored in {chunks} chunks",
        chunks=chunks,
    )


@router.delete("/documents/{file_id}", tags=["Documents"])
async def delete_document(file_id: str, services: Services = Depends(get_services)) -> IngestResponse:
    """Remove every stored chunk of a document."""
    await services.ingestor.delete(file_id)
    return IngestResponse(success=True, message=f"Document {file_id} deleted")


@router.post("/setup-vector-store", tags=["Documents"])
async def setup_vector_store(services: Services = Depends(get_services)) -> IngestResponse:
    """Create the chunk collection if it does not exist yet."""
    store = services.vector_store
    existed = await asyncio.to_thread(store.ensure_collection)
    if existed:
        message = f"Collection {store.collection_name} already exists with {await store.count()} chunks"
    else:
        message = f"Collection {store.collection_name} created with {store.dimension} dimensions"
    logger.info(message)
    return IngestResponse(success=True, message=message)


@router.get("/slack-test", tags=["Slack"])
async def slack_test(
    mode: str = Query("lunch"),
    channel: str = Query("general"),
    timeframe: Optional[str] = Query("today"),
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Run a Slack status lookup (or just resolve the channel) outside the chat flow."""
    if mode not in SLACK_TEST_MODES:
        raise InvalidRequest('Invalid mode. Use "lunch", "update", "report", or "channel".')
    timeframe = validate_timeframe(timeframe)

    logger.info(f"Testing Slack function mode={mode} for channel={channel}, timeframe={timeframe}")

    if mode == "channel":
        channel_id = await services.slack.resolve_channel(channel)
        return JSONResponse(content={"channelName": channel, "channelId": channel_id})

    report = await services.slack.get_status_report(mode, channel, timeframe)
    return JSONResponse(content=report.model_dump(by_alias=True))


@router.get("/slack-validate", tags=["Slack"])
async def slack_validate(services: Services = Depends(get_services)) -> JSONResponse:
    """Report whether the Slack token works and which channels it can read."""
    return JSONResponse(content=await services.slack.validate_token())
