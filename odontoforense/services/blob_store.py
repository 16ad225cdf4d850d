"""
Binary object storage

Objects are split into fixed-size chunks stored in the database, so downloads
can be streamed chunk by chunk without loading the whole object.
"""
import math
from typing import Any, Dict, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError

from config.settings import settings
from odontoforense.db.connection import DatabaseManager
from odontoforense.db.models.blob import BlobFile, BlobChunk
from odontoforense.utils.exceptions import BlobNotFoundError, StorageError, StreamError
from odontoforense.utils.logger import get_logger

logger = get_logger(__name__)


class BlobStore:
    """Key/value binary store keyed by generated ids"""

    def __init__(self, db_manager: DatabaseManager, chunk_size: Optional[int] = None):
        """
        Args:
            db_manager: database the objects are stored in
            chunk_size: bytes per chunk (defaults to settings.blob_chunk_size)
        """
        self.db_manager = db_manager
        self.chunk_size = chunk_size or settings.blob_chunk_size

    def put(self, content: bytes, filename: str, metadata: Optional[Dict[str, Any]] = None) -> str:
        """
        Store an object

        The write commits on its own session, independent of any caller
        transaction.

        Args:
            content: object bytes
            filename: name recorded with the object
            metadata: free-form metadata

        Returns:
            Id of the stored object

        Raises:
            StorageError: when the write fails
        """
        try:
            with self.db_manager.get_db_session() as session:
                blob = BlobFile(
                    filename=filename,
                    length=len(content),
                    chunk_size=self.chunk_size,
                    file_metadata=metadata or {},
                )
                session.add(blob)
                session.flush()

                for n, offset in enumerate(range(0, len(content), self.chunk_size)):
                    session.add(BlobChunk(
                        file_id=blob.id,
                        n=n,
                        data=content[offset:offset + self.chunk_size],
                    ))

                blob_id = blob.id
        except SQLAlchemyError as e:
            logger.error(f"Blob upload failed: {filename} - {str(e)}")
            raise StorageError(f"could not store {filename}: {str(e)}") from e

        logger.info(f"Blob stored: {blob_id} ({filename}, {len(content)} bytes)")
        return blob_id

    def get_info(self, blob_id: str) -> BlobFile:
        """
        Fetch the header of a stored object

        Raises:
            BlobNotFoundError: when the id is unknown
            StorageError: when the lookup fails
        """
        try:
            with self.db_manager.get_db_session() as session:
                blob = session.get(BlobFile, blob_id)
        except SQLAlchemyError as e:
            raise StorageError(f"could not read file {blob_id}: {str(e)}") from e

        if blob is None:
            raise BlobNotFoundError(blob_id)
        return blob

    def exists(self, blob_id: str) -> bool:
        try:
            self.get_info(blob_id)
            return True
        except BlobNotFoundError:
            return False

    def open_read_stream(self, blob_id: str) -> Iterator[bytes]:
        """
        Open a chunked download stream

        The id is resolved eagerly, so an unknown id fails here rather than
        during iteration.

        Args:
            blob_id: object id

        Returns:
            Iterator of byte chunks; raises StreamError mid-iteration on failure

        Raises:
            BlobNotFoundError: when the id is unknown
        """
        blob = self.get_info(blob_id)
        return self._iter_chunks(blob)

    def _iter_chunks(self, blob: BlobFile) -> Iterator[bytes]:
        expected_chunks = math.ceil(blob.length / blob.chunk_size) if blob.length else 0
        session = self.db_manager.get_session()
        try:
            for n in range(expected_chunks):
                chunk = session.query(BlobChunk).filter(
                    BlobChunk.file_id == blob.id,
                    BlobChunk.n == n
                ).first()
                if chunk is None:
                    raise StreamError(f"chunk {n} of file {blob.id} is missing")
                yield chunk.data
        except SQLAlchemyError as e:
            logger.error(f"Blob stream failed: {blob.id} - {str(e)}")
            raise StreamError(f"could not read file {blob.id}: {str(e)}") from e
        finally:
            session.close()

    def read(self, blob_id: str) -> bytes:
        """Read a whole object into memory"""
        return b"".join(self.open_read_stream(blob_id))

    def delete(self, blob_id: str) -> None:
        """
        Remove an object and its chunks

        Raises:
            BlobNotFoundError: when the id is unknown
            StorageError: when the delete fails
        """
        deleted = False
        try:
            with self.db_manager.get_db_session() as session:
                blob = session.get(BlobFile, blob_id)
                if blob is not None:
                    session.query(BlobChunk).filter(BlobChunk.file_id == blob_id).delete()
                    session.delete(blob)
                    deleted = True
        except SQLAlchemyError as e:
            raise StorageError(f"could not delete file {blob_id}: {str(e)}") from e

        if not deleted:
            raise BlobNotFoundError(blob_id)
        logger.info(f"Blob deleted: {blob_id}")
