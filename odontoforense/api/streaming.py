"""
Streaming responses for stored files
"""
from fastapi.responses import StreamingResponse

from odontoforense.services.blob_store import BlobStore
from odontoforense.utils.logger import get_logger

logger = get_logger(__name__)


def stream_blob(blob_store: BlobStore, blob_id: str, media_type: str, filename: str) -> StreamingResponse:
    """
    Stream a stored file inline

    The blob is resolved before the response starts, so an unknown id becomes
    a 404. A StreamError raised while chunks are being sent can no longer be
    turned into an error payload and aborts the response.

    Raises:
        BlobNotFoundError: when the id is unknown
    """
    chunks = blob_store.open_read_stream(blob_id)
    logger.debug(f"Streaming {blob_id} as {media_type}")
    return StreamingResponse(
        chunks,
        media_type=media_type,
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )
