# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Application package upload for pyairwatch.

This module uploads iOS and Android application binaries to AirWatch so they
can be installed as internal applications. Two endpoints are supported:

- **Chunked upload** (``mam/apps/internal/uploadchunk``): the file is split
  into fixed-size chunks, each sent base64-encoded in its own JSON request.
  The first response assigns a transaction id that every later chunk must
  carry. The final transaction id is what ``install_app`` needs.
- **Blob upload** (``mam/blobs/uploadblob``): the whole file is streamed as
  the body of one request.

Chunked Upload Lifecycle:

    IDLE -> UPLOADING -> COMPLETED
                      -> FAILED

Chunks are sent strictly one at a time. Chunk n+1 is read from disk only
after the response for chunk n has been checked. Any failure ends the
session: nothing is retried and no cleanup call is made to the server, so a
failed upload leaves an orphaned transaction behind on the AirWatch side.

Example:
    Upload and keep the transaction id:
        ```python
        from pathlib import Path
        from pyairwatch.io import ApiTransport, upload_app_chunks

        with ApiTransport(config) as transport:
            result = upload_app_chunks(transport, Path("./MyApp.ipa"))
        print(f"Uploaded with transaction id {result.transaction_id}")
        ```

    Watch progress through structured events:
        ```python
        def on_event(event):
            if event.kind == "chunk_acknowledged":
                print(f"{event.bytes_uploaded}/{event.total_size} bytes")

        upload_app_chunks(transport, Path("./MyApp.ipa"), on_event=on_event)
        ```
"""

from __future__ import annotations

import base64
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

import requests

from pyairwatch.config.loader import DEFAULT_CHUNK_SIZE
from pyairwatch.exceptions import (
    AirWatchError,
    ConfigError,
    ProtocolViolationError,
    ServerRejectedError,
    TransportError,
    UploadSourceError,
)
from pyairwatch.io.chunks import ByteSource, Chunk, count_chunks, validate_chunk_size
from pyairwatch.io.session import ApiResponse, require_ok_body
from pyairwatch.logging import Logger, get_global_logger
from pyairwatch.results import BlobUploadResult, UploadResult

__all__ = [
    "UPLOAD_CHUNK_ENDPOINT",
    "UPLOAD_BLOB_ENDPOINT",
    "UploadState",
    "UploadEvent",
    "UploadSession",
    "ChunkUploader",
    "build_chunk_request",
    "upload_app_chunks",
    "upload_app_blob",
]

UPLOAD_CHUNK_ENDPOINT = "mam/apps/internal/uploadchunk"
UPLOAD_BLOB_ENDPOINT = "mam/blobs/uploadblob"

# The upload API misspells this field; it must be read exactly as sent.
RESPONSE_TRANSACTION_ID = "TranscationId"


class ChunkTransport(Protocol):
    """What the uploader needs from a transport."""

    def post(self, endpoint: str, body: Any) -> ApiResponse: ...


class UploadState(Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class UploadEvent:
    """Structured notification emitted while an upload runs.

    Events never change the course of an upload; they exist for progress
    display and auditing.

    Attributes:
        kind: One of "started", "chunk_sent", "chunk_acknowledged",
            "completed", "failed".
        file_path: File being uploaded.
        total_size: Size of the file in bytes.
        bytes_uploaded: Bytes acknowledged by the server so far.
        sequence_number: 1-based chunk number, for chunk events.
        chunk_size: Payload size of that chunk, for chunk events.
        transaction_id: Transaction id known at the time of the event.
        message: Human readable description (the error, for "failed").
    """

    kind: str
    file_path: Path
    total_size: int
    bytes_uploaded: int
    sequence_number: int | None = None
    chunk_size: int | None = None
    transaction_id: str | None = None
    message: str = ""


EventCallback = Callable[[UploadEvent], None]


@dataclass
class UploadSession:
    """Mutable state of one chunked upload.

    Attributes:
        file_path: File being uploaded.
        total_size: Size of the file, fixed when the session starts.
        chunk_size: Bytes per chunk, constant for the session.
        bytes_uploaded: Bytes acknowledged by the server so far.
        transaction_id: Id assigned by the first successful response.
        state: Current lifecycle state.
        chunks_sent: Number of chunk requests handed to the transport.
        error: The error that ended the session, if it failed.
    """

    file_path: Path
    total_size: int
    chunk_size: int = DEFAULT_CHUNK_SIZE
    bytes_uploaded: int = 0
    transaction_id: str | None = None
    state: UploadState = UploadState.IDLE
    chunks_sent: int = 0
    error: Exception | None = field(default=None, repr=False)

    @property
    def expected_chunks(self) -> int:
        return count_chunks(self.total_size, self.chunk_size)


def build_chunk_request(
    chunk: Chunk, total_size: int, transaction_id: str | None = None
) -> dict[str, Any]:
    """Build the JSON body for one uploadchunk request.

    TransactionId is left out until the server has assigned one, i.e. on the
    first chunk of a session.
    """
    body: dict[str, Any] = {
        "ChunkData": base64.b64encode(chunk.data).decode("ascii"),
        "ChunkSequenceNumber": chunk.sequence_number,
        "TotalApplicationSize": total_size,
        "ChunkSize": chunk.size,
    }
    if transaction_id:
        body["TransactionId"] = transaction_id
    return body


def _transaction_id_from(body: dict[str, Any]) -> str | None:
    value = body.get(RESPONSE_TRANSACTION_ID)
    if value is None:
        value = body.get("TransactionId")
    if value is None or value == "":
        return None
    return str(value)


class ChunkUploader:
    """Drives one file through the uploadchunk endpoint, one chunk at a time.

    An uploader runs a single session. Create a new one for each file.

    Args:
        transport: Object with ``post(endpoint, body) -> ApiResponse``.
        file_path: File to upload. Its size is read immediately.
        chunk_size: Bytes per chunk.
        on_event: Optional callback receiving UploadEvent notifications.
        logger: Logger for progress output (defaults to the global logger).

    Raises:
        UploadSourceError: If the file is missing or not a regular file.
        ConfigError: If chunk_size is not a positive integer.
    """

    def __init__(
        self,
        transport: ChunkTransport,
        file_path: Path,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        on_event: EventCallback | None = None,
        logger: Logger | None = None,
    ) -> None:
        validate_chunk_size(chunk_size)

        self.transport = transport
        self._source = ByteSource(Path(file_path))
        self.session = UploadSession(
            file_path=self._source.path,
            total_size=self._source.size,
            chunk_size=chunk_size,
        )
        self._on_event = on_event
        self._logger = logger if logger is not None else get_global_logger()

    def run(self) -> UploadResult:
        """Upload every chunk and return the final transaction id.

        Returns:
            Transaction id, size and chunk count of the completed upload.

        Raises:
            UploadSourceError: If the file is empty, unreadable, or shorter
                than its size at session start.
            TransportError: If a chunk request got no response.
            ServerRejectedError: If a chunk got a non-2xx status or
                UploadSuccess false.
            ProtocolViolationError: If a response has no usable body or the
                transaction id changes mid-upload.
            AirWatchError: If this uploader already ran.
        """
        session = self.session
        if session.state is not UploadState.IDLE:
            raise AirWatchError(
                f"Upload session for {session.file_path} already ran "
                f"(state: {session.state.value})"
            )

        session.state = UploadState.UPLOADING
        self._logger.verbose(
            "UPLOAD",
            f"Uploading {session.file_path.name} ({session.total_size} bytes, "
            f"{session.expected_chunks} chunk(s) of {session.chunk_size})",
        )
        self._emit("started")

        try:
            if session.total_size == 0:
                raise UploadSourceError(
                    f"Upload file is empty, nothing to upload: {session.file_path}"
                )
            with self._source:
                chunks = self._source.chunks(session.chunk_size)
                while True:
                    chunk = self._next_chunk(chunks)
                    if chunk is None:
                        break
                    self._send_chunk(chunk)
                    if session.bytes_uploaded == session.total_size:
                        return self._complete()
            raise UploadSourceError(
                f"{session.file_path} ended after {session.bytes_uploaded} of "
                f"{session.total_size} bytes"
            )
        except Exception as err:
            # Every exit other than completion leaves the session FAILED.
            self._fail(err)
            raise

    def _next_chunk(self, chunks: Iterator[Chunk]) -> Chunk | None:
        """Read the next chunk, or None at end of file.

        A chunk shorter than its share of the recorded size means the file
        shrank; it is refused before being sent.
        """
        session = self.session
        try:
            chunk = next(chunks, None)
        except OSError as err:
            raise UploadSourceError(
                f"Failed reading {session.file_path}: {err}"
            ) from err
        if chunk is None:
            return None

        offset = chunk.index * session.chunk_size
        expected = min(session.chunk_size, session.total_size - offset)
        if chunk.size != expected:
            raise UploadSourceError(
                f"{session.file_path} ended after {offset + chunk.size} of "
                f"{session.total_size} bytes"
            )
        return chunk

    def _send_chunk(self, chunk: Chunk) -> None:
        session = self.session
        body = build_chunk_request(chunk, session.total_size, session.transaction_id)

        session.chunks_sent += 1
        self._logger.debug(
            "UPLOAD",
            f"Sending chunk {chunk.sequence_number}/{session.expected_chunks} "
            f"({chunk.size} bytes)",
        )
        self._emit("chunk_sent", chunk)

        try:
            response = self.transport.post(UPLOAD_CHUNK_ENDPOINT, body)
        except requests.RequestException as err:
            raise TransportError(
                f"Upload chunk {chunk.sequence_number} failed: {err}"
            ) from err
        self._acknowledge(chunk, response)

    def _acknowledge(self, chunk: Chunk, response: ApiResponse) -> None:
        session = self.session
        action = f"Upload chunk {chunk.sequence_number}"
        reply = require_ok_body(response, action)
        if not isinstance(reply, dict):
            raise ProtocolViolationError(
                f"{action} failed: response body is not a JSON object"
            )
        if reply.get("UploadSuccess") is not True:
            raise ServerRejectedError(
                f"{action} failed: server reported UploadSuccess=false "
                f"(HTTP {response.status_code})",
                status_code=response.status_code,
            )

        transaction_id = _transaction_id_from(reply)
        if session.transaction_id is None:
            if transaction_id is None:
                raise ProtocolViolationError(
                    f"{action}: response carries no transaction id"
                )
            session.transaction_id = transaction_id
            self._logger.verbose("UPLOAD", f"Transaction id: {transaction_id}")
        elif transaction_id != session.transaction_id:
            raise ProtocolViolationError(
                f"{action}: transaction id changed from "
                f"{session.transaction_id!r} to {transaction_id!r}"
            )

        session.bytes_uploaded += chunk.size
        self._emit("chunk_acknowledged", chunk)

    def _complete(self) -> UploadResult:
        session = self.session
        if session.transaction_id is None:
            raise ProtocolViolationError(
                f"Upload of {session.file_path} finished without a transaction id"
            )
        session.state = UploadState.COMPLETED
        self._logger.verbose(
            "UPLOAD",
            f"Upload complete: {session.chunks_sent} chunk(s), "
            f"transaction id {session.transaction_id}",
        )
        self._emit("completed")
        return UploadResult(
            transaction_id=session.transaction_id,
            file_path=session.file_path,
            total_size=session.total_size,
            chunk_count=session.chunks_sent,
            status="success",
        )

    def _fail(self, err: Exception) -> None:
        session = self.session
        session.state = UploadState.FAILED
        session.error = err
        self._logger.verbose("UPLOAD", f"Upload failed: {err}")
        self._emit("failed", message=str(err))

    def _emit(self, kind: str, chunk: Chunk | None = None, message: str = "") -> None:
        if self._on_event is None:
            return
        session = self.session
        event = UploadEvent(
            kind=kind,
            file_path=session.file_path,
            total_size=session.total_size,
            bytes_uploaded=session.bytes_uploaded,
            sequence_number=chunk.sequence_number if chunk else None,
            chunk_size=chunk.size if chunk else None,
            transaction_id=session.transaction_id,
            message=message,
        )
        try:
            self._on_event(event)
        except Exception as err:
            # Listeners observe the upload; they cannot stop it.
            self._logger.warning("UPLOAD", f"Event callback failed on {kind!r}: {err!r}")


def upload_app_chunks(
    transport: ChunkTransport,
    file_path: Path,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    on_event: EventCallback | None = None,
    logger: Logger | None = None,
) -> UploadResult:
    """Upload an application package in chunks.

    Must be called before install_app for internal applications: the
    returned transaction id identifies the uploaded binary.

    Args:
        transport: Transport used for the chunk POSTs.
        file_path: iOS (.ipa) or Android (.apk) package to upload.
        chunk_size: Bytes per chunk. Default is 35840 (35 KiB).
        on_event: Optional callback receiving UploadEvent notifications.
        logger: Logger for progress output (defaults to the global logger).

    Returns:
        The completed upload, including its transaction id.

    Raises:
        UploadSourceError, TransportError, ServerRejectedError,
        ProtocolViolationError: See ChunkUploader.run.
    """
    uploader = ChunkUploader(
        transport,
        file_path,
        chunk_size=chunk_size,
        on_event=on_event,
        logger=logger,
    )
    return uploader.run()


def upload_app_blob(
    transport: Any,
    file_path: Path,
    group_id: str | None,
    *,
    logger: Logger | None = None,
) -> BlobUploadResult:
    """Upload an application package as a single streamed blob.

    Args:
        transport: ApiTransport (needs ``post_stream``).
        file_path: Package to upload.
        group_id: Organization group id that will own the blob.
        logger: Logger for progress output (defaults to the global logger).

    Returns:
        The parsed response of the blob endpoint.

    Raises:
        ConfigError: If no group id is available.
        UploadSourceError: If the file is missing or unreadable.
        TransportError, ServerRejectedError, ProtocolViolationError: On
            request failure.
    """
    if logger is None:
        logger = get_global_logger()
    if not group_id:
        raise ConfigError("Blob upload requires an organization group id (group_id)")

    source = ByteSource(Path(file_path))
    params = {"filename": source.path.name, "organizationgroupid": group_id}
    logger.verbose(
        "UPLOAD", f"Uploading blob {source.path.name} ({source.size} bytes)"
    )
    with source:
        response = transport.post_stream(
            UPLOAD_BLOB_ENDPOINT, source.stream, params=params
        )
    body = require_ok_body(response, "Upload blob")
    if not isinstance(body, dict):
        raise ProtocolViolationError("Upload blob failed: response body is not a JSON object")

    return BlobUploadResult(
        file_path=source.path,
        total_size=source.size,
        body=body,
        status="success",
    )
