"""Input/Output operations for pyairwatch.

This package holds everything that moves bytes: the authenticated HTTP
transport, fixed-size chunking of application packages, and the upload
sequencer built on top of both.

Modules:

session : module
    Authenticated HTTP transport with typed failures.
chunks : module
    Byte source and fixed-size chunk splitter.
upload : module
    Chunked and blob uploads of application packages.

Public API:

ApiTransport : class
    Authenticated GET/POST against one AirWatch tenant.
upload_app_chunks : function
    Upload a package chunk by chunk and return its transaction id.
upload_app_blob : function
    Upload a package as one streamed blob.

Example:
    from pathlib import Path
    from pyairwatch.io import ApiTransport, upload_app_chunks

    with ApiTransport(config) as transport:
        result = upload_app_chunks(transport, Path("./MyApp.ipa"))
    print(result.transaction_id)

"""

from .chunks import ByteSource, Chunk, count_chunks, iter_chunks
from .session import ApiResponse, ApiTransport, make_session
from .upload import (
    ChunkUploader,
    UploadEvent,
    UploadSession,
    UploadState,
    upload_app_blob,
    upload_app_chunks,
)

__all__ = [
    "ApiResponse",
    "ApiTransport",
    "ByteSource",
    "Chunk",
    "ChunkUploader",
    "UploadEvent",
    "UploadSession",
    "UploadState",
    "count_chunks",
    "iter_chunks",
    "make_session",
    "upload_app_blob",
    "upload_app_chunks",
]
