"""
Tests for pyairwatch.io.upload module.

Tests the chunked upload sequencer including:
- Request bodies (sequence numbers, sizes, transaction id handling)
- Terminal states and the errors that lead to them
- End-to-end scenarios over HTTP (requests_mock)
- Structured upload events
- Blob upload
"""

from __future__ import annotations

import base64

import pytest
import requests
import requests_mock

from conftest import BASE_URL, UPLOAD_URL, FakeTransport, ok_chunk
from pyairwatch.exceptions import (
    AirWatchError,
    ConfigError,
    ProtocolViolationError,
    ServerRejectedError,
    TransportError,
    UploadSourceError,
)
from pyairwatch.io.chunks import Chunk
from pyairwatch.io.session import ApiResponse
from pyairwatch.io.upload import (
    UPLOAD_CHUNK_ENDPOINT,
    ChunkUploader,
    UploadState,
    build_chunk_request,
    upload_app_blob,
    upload_app_chunks,
)
from pyairwatch.logging import RecordingLogger

CHUNK = 35840


class TestBuildChunkRequest:
    """Tests for the uploadchunk request body."""

    def test_first_chunk_has_no_transaction_id(self):
        """Test the body of a first chunk."""
        body = build_chunk_request(Chunk(index=0, data=b"abc"), 3)

        assert body == {
            "ChunkData": base64.b64encode(b"abc").decode("ascii"),
            "ChunkSequenceNumber": 1,
            "TotalApplicationSize": 3,
            "ChunkSize": 3,
        }

    def test_later_chunk_carries_transaction_id(self):
        """Test that a known transaction id is included."""
        body = build_chunk_request(Chunk(index=2, data=b"xy"), 100, "tx-9")

        assert body["TransactionId"] == "tx-9"
        assert body["ChunkSequenceNumber"] == 3
        assert body["ChunkSize"] == 2
        assert body["TotalApplicationSize"] == 100


class TestChunkUploaderSuccess:
    """Tests for uploads that complete."""

    def test_sequence_numbers_and_transaction_id(self, make_file):
        """Test request numbering and transaction id propagation."""
        path = make_file("app.ipa", 25)
        transport = FakeTransport([ok_chunk("tx-1")] * 3)

        result = upload_app_chunks(transport, path, chunk_size=10)

        bodies = [body for _, body in transport.calls]
        assert [b["ChunkSequenceNumber"] for b in bodies] == [1, 2, 3]
        assert "TransactionId" not in bodies[0]
        assert [b["TransactionId"] for b in bodies[1:]] == ["tx-1", "tx-1"]
        assert all(endpoint == UPLOAD_CHUNK_ENDPOINT for endpoint, _ in transport.calls)
        assert result.transaction_id == "tx-1"
        assert result.chunk_count == 3
        assert result.total_size == 25
        assert result.status == "success"

    def test_payloads_reconstruct_file(self, make_file):
        """Test that decoded ChunkData concatenates to the file contents."""
        path = make_file("app.ipa", 1000)
        transport = FakeTransport([ok_chunk()] * 4)

        upload_app_chunks(transport, path, chunk_size=300)

        decoded = b"".join(
            base64.b64decode(body["ChunkData"]) for _, body in transport.calls
        )
        assert decoded == path.read_bytes()
        assert [body["ChunkSize"] for _, body in transport.calls] == [300, 300, 300, 100]

    def test_session_state_after_completion(self, make_file):
        """Test the session record once the upload completes."""
        path = make_file("app.ipa", 20)
        uploader = ChunkUploader(FakeTransport([ok_chunk()] * 2), path, chunk_size=10)

        assert uploader.session.state is UploadState.IDLE
        uploader.run()

        session = uploader.session
        assert session.state is UploadState.COMPLETED
        assert session.bytes_uploaded == session.total_size == 20
        assert session.transaction_id == "tx-1"
        assert session.error is None

    def test_single_small_file(self, make_file):
        """Test that a file smaller than one chunk is sent as one request."""
        path = make_file("app.ipa", 5)
        transport = FakeTransport([ok_chunk("only")])

        result = upload_app_chunks(transport, path)

        assert len(transport.calls) == 1
        assert transport.calls[0][1]["ChunkSize"] == 5
        assert result.transaction_id == "only"

    def test_correctly_spelled_transaction_id_accepted(self, make_file):
        """Test fallback to TransactionId when the misspelled field is absent."""
        path = make_file("app.ipa", 4)
        response = ApiResponse(200, {"UploadSuccess": True, "TransactionId": "tx-ok"})

        result = upload_app_chunks(FakeTransport([response]), path)

        assert result.transaction_id == "tx-ok"

    def test_uploader_runs_once(self, make_file):
        """Test that a finished uploader cannot be run again."""
        path = make_file("app.ipa", 4)
        uploader = ChunkUploader(FakeTransport([ok_chunk()]), path)
        uploader.run()

        with pytest.raises(AirWatchError, match="already ran"):
            uploader.run()


class TestChunkUploaderFailure:
    """Tests for uploads that end in FAILED."""

    def test_upload_success_false_stops(self, make_file):
        """Test that UploadSuccess=false ends the session without more requests."""
        path = make_file("app.ipa", 30)
        transport = FakeTransport(
            [ok_chunk(), ApiResponse(200, {"UploadSuccess": False}), ok_chunk()]
        )
        uploader = ChunkUploader(transport, path, chunk_size=10)

        with pytest.raises(ServerRejectedError, match="UploadSuccess=false") as exc:
            uploader.run()

        assert exc.value.status_code == 200
        assert len(transport.calls) == 2
        assert uploader.session.state is UploadState.FAILED
        assert uploader.session.error is exc.value
        assert uploader.session.bytes_uploaded == 10

    def test_http_error_status(self, make_file):
        """Test that a non-2xx status ends the session with its code."""
        path = make_file("app.ipa", 30)
        transport = FakeTransport([ApiResponse(500, None, "Server Error")])

        with pytest.raises(ServerRejectedError, match="HTTP 500") as exc:
            upload_app_chunks(transport, path, chunk_size=10)

        assert exc.value.status_code == 500
        assert len(transport.calls) == 1

    def test_transport_error_propagates(self, make_file):
        """Test that a transport failure ends the session."""
        path = make_file("app.ipa", 30)
        transport = FakeTransport([ok_chunk(), TransportError("connection reset")])
        uploader = ChunkUploader(transport, path, chunk_size=10)

        with pytest.raises(TransportError, match="connection reset"):
            uploader.run()

        assert len(transport.calls) == 2
        assert uploader.session.state is UploadState.FAILED

    def test_requests_error_becomes_transport_error(self, make_file):
        """Test that a raw requests exception is reported as a transport failure."""
        path = make_file("app.ipa", 25)
        reset = requests.exceptions.ConnectionError("reset")
        transport = FakeTransport([ok_chunk(), reset])
        uploader = ChunkUploader(transport, path, chunk_size=10)

        with pytest.raises(TransportError, match="Upload chunk 2 failed") as exc:
            uploader.run()

        assert exc.value.__cause__ is reset
        assert uploader.session.state is UploadState.FAILED

    @pytest.mark.parametrize("flag", ["false", "true", 1, None])
    def test_upload_success_must_be_boolean_true(self, make_file, flag):
        """Test that only a JSON true counts as success."""
        path = make_file("app.ipa", 10)
        transport = FakeTransport(
            [ApiResponse(200, {"UploadSuccess": flag, "TranscationId": "tx"})]
        )

        with pytest.raises(ServerRejectedError, match="UploadSuccess=false"):
            upload_app_chunks(transport, path, chunk_size=10)

    def test_transaction_id_mismatch(self, make_file):
        """Test that a changed transaction id is a protocol violation."""
        path = make_file("app.ipa", 30)
        transport = FakeTransport([ok_chunk("A"), ok_chunk("B"), ok_chunk("B")])

        with pytest.raises(ProtocolViolationError, match="changed from 'A' to 'B'"):
            upload_app_chunks(transport, path, chunk_size=10)

        assert len(transport.calls) == 2

    def test_missing_transaction_id_on_first_response(self, make_file):
        """Test that the first success must assign a transaction id."""
        path = make_file("app.ipa", 10)
        transport = FakeTransport([ApiResponse(200, {"UploadSuccess": True})])

        with pytest.raises(ProtocolViolationError, match="no transaction id"):
            upload_app_chunks(transport, path, chunk_size=10)

    @pytest.mark.parametrize("body", [None, {}, ["UploadSuccess"], "ok"])
    def test_malformed_body(self, make_file, body):
        """Test that absent or non-object bodies are protocol violations."""
        path = make_file("app.ipa", 10)
        transport = FakeTransport([ApiResponse(200, body)])

        with pytest.raises(ProtocolViolationError):
            upload_app_chunks(transport, path, chunk_size=10)

    def test_empty_file_rejected_before_any_request(self, make_file):
        """Test that a zero-byte file fails without contacting the server."""
        path = make_file("empty.ipa", 0)
        transport = FakeTransport([])
        uploader = ChunkUploader(transport, path)

        with pytest.raises(UploadSourceError, match="nothing to upload"):
            uploader.run()

        assert transport.calls == []
        assert uploader.session.state is UploadState.FAILED

    def test_missing_file_rejected(self, tmp_test_dir):
        """Test that a missing file fails before a session exists."""
        transport = FakeTransport([])

        with pytest.raises(UploadSourceError):
            upload_app_chunks(transport, tmp_test_dir / "nope.ipa")

        assert transport.calls == []

    def test_file_truncated_during_upload(self, make_file):
        """Test that a file shrinking mid-upload is reported."""
        path = make_file("app.ipa", 30)

        class TruncatingTransport(FakeTransport):
            def post(self, endpoint, body):
                if not self.calls:
                    path.write_bytes(b"short")
                return super().post(endpoint, body)

        transport = TruncatingTransport([ok_chunk()] * 3)
        uploader = ChunkUploader(transport, path, chunk_size=10)

        with pytest.raises(UploadSourceError, match="ended after"):
            uploader.run()
        assert uploader.session.state is UploadState.FAILED

    def test_short_chunk_is_not_sent(self, make_file):
        """Test that a chunk cut short by truncation is refused before sending."""
        path = make_file("app.ipa", 30)

        class TruncatingTransport(FakeTransport):
            def post(self, endpoint, body):
                if not self.calls:
                    path.write_bytes(bytes(15))
                return super().post(endpoint, body)

        transport = TruncatingTransport([ok_chunk()] * 3)
        uploader = ChunkUploader(transport, path, chunk_size=10)

        with pytest.raises(UploadSourceError, match="ended after 15 of 30 bytes"):
            uploader.run()

        assert len(transport.calls) == 1
        assert uploader.session.state is UploadState.FAILED

    def test_invalid_chunk_size(self, make_file):
        """Test that the chunk size is validated up front."""
        path = make_file("app.ipa", 10)

        with pytest.raises(ConfigError):
            ChunkUploader(FakeTransport([]), path, chunk_size=0)


class TestUploadEvents:
    """Tests for structured upload events."""

    def test_success_event_sequence(self, make_file):
        """Test the events emitted by a two-chunk upload."""
        path = make_file("app.ipa", 15)
        events = []

        upload_app_chunks(
            FakeTransport([ok_chunk("tx")] * 2),
            path,
            chunk_size=10,
            on_event=events.append,
        )

        assert [e.kind for e in events] == [
            "started",
            "chunk_sent",
            "chunk_acknowledged",
            "chunk_sent",
            "chunk_acknowledged",
            "completed",
        ]
        acks = [e for e in events if e.kind == "chunk_acknowledged"]
        assert [e.bytes_uploaded for e in acks] == [10, 15]
        assert [e.sequence_number for e in acks] == [1, 2]
        assert events[1].transaction_id is None
        assert events[-1].transaction_id == "tx"

    def test_failure_event(self, make_file):
        """Test that a failure emits a final failed event with the reason."""
        path = make_file("app.ipa", 15)
        events = []

        with pytest.raises(ServerRejectedError):
            upload_app_chunks(
                FakeTransport([ApiResponse(403, {"message": "nope"}, "Forbidden")]),
                path,
                chunk_size=10,
                on_event=events.append,
            )

        assert events[-1].kind == "failed"
        assert "HTTP 403" in events[-1].message

    def test_raising_callback_does_not_stop_upload(self, make_file):
        """Test that a failing listener is logged and the upload completes."""
        path = make_file("app.ipa", 25)
        transport = FakeTransport([ok_chunk()] * 3)
        recorder = RecordingLogger()

        def on_event(event):
            if event.kind == "chunk_acknowledged":
                raise BrokenPipeError("stdout closed")

        uploader = ChunkUploader(
            transport, path, chunk_size=10, on_event=on_event, logger=recorder
        )
        result = uploader.run()

        assert result.chunk_count == 3
        assert len(transport.calls) == 3
        assert uploader.session.state is UploadState.COMPLETED
        warnings = recorder.messages("warning")
        assert len(warnings) == 3
        assert "stdout closed" in warnings[0]

    def test_raising_callback_keeps_original_failure(self, make_file):
        """Test that a listener failing on the failed event does not mask the error."""
        path = make_file("app.ipa", 10)

        def on_event(event):
            if event.kind == "failed":
                raise RuntimeError("listener broke")

        with pytest.raises(ServerRejectedError, match="HTTP 403"):
            upload_app_chunks(
                FakeTransport([ApiResponse(403, None, "Forbidden")]),
                path,
                chunk_size=10,
                on_event=on_event,
                logger=RecordingLogger(),
            )


class TestUploadScenariosOverHttp:
    """End-to-end scenarios through ApiTransport and requests_mock."""

    def test_scenario_a_exact_multiple(self, transport, make_file):
        """Test a file of exactly three chunks."""
        path = make_file("app.ipa", CHUNK * 3)

        with requests_mock.Mocker() as m:
            m.post(UPLOAD_URL, json={"UploadSuccess": True, "TranscationId": "tx-A"})
            result = upload_app_chunks(transport, path, chunk_size=CHUNK)

        bodies = [r.json() for r in m.request_history]
        assert len(bodies) == 3
        assert [b["ChunkSequenceNumber"] for b in bodies] == [1, 2, 3]
        assert result.transaction_id == "tx-A"

    def test_scenario_b_short_last_chunk(self, transport, make_file):
        """Test that the last chunk carries the remainder."""
        path = make_file("app.ipa", CHUNK * 2 + 100)

        with requests_mock.Mocker() as m:
            m.post(UPLOAD_URL, json={"UploadSuccess": True, "TranscationId": "tx-B"})
            upload_app_chunks(transport, path, chunk_size=CHUNK)

        bodies = [r.json() for r in m.request_history]
        assert len(bodies) == 3
        assert bodies[-1]["ChunkSize"] == 100
        assert {b["TotalApplicationSize"] for b in bodies} == {CHUNK * 2 + 100}

    def test_scenario_c_transport_error_on_second_request(self, transport, make_file):
        """Test that a connection error stops the upload after two requests."""
        path = make_file("app.ipa", CHUNK * 3)

        with requests_mock.Mocker() as m:
            m.post(
                UPLOAD_URL,
                [
                    {"json": {"UploadSuccess": True, "TranscationId": "tx-C"}},
                    {"exc": requests.exceptions.ConnectionError},
                ],
            )
            with pytest.raises(TransportError) as exc:
                upload_app_chunks(transport, path, chunk_size=CHUNK)

        assert m.call_count == 2
        assert isinstance(exc.value.__cause__, requests.exceptions.ConnectionError)

    def test_scenario_d_transaction_id_changes(self, transport, make_file):
        """Test that a different id on the second response stops the upload."""
        path = make_file("app.ipa", CHUNK * 3)

        with requests_mock.Mocker() as m:
            m.post(
                UPLOAD_URL,
                [
                    {"json": {"UploadSuccess": True, "TranscationId": "A"}},
                    {"json": {"UploadSuccess": True, "TranscationId": "B"}},
                    {"json": {"UploadSuccess": True, "TranscationId": "B"}},
                ],
            )
            with pytest.raises(ProtocolViolationError):
                upload_app_chunks(transport, path, chunk_size=CHUNK)

        assert m.call_count == 2
        assert m.request_history[1].json()["TransactionId"] == "A"

    def test_chunk_posts_are_not_retried(self, transport, make_file):
        """Test that a 503 on a chunk is not retried by the session."""
        path = make_file("app.ipa", 10)

        with requests_mock.Mocker() as m:
            m.post(UPLOAD_URL, status_code=503)
            with pytest.raises(ServerRejectedError):
                upload_app_chunks(transport, path)

        assert m.call_count == 1


class TestUploadAppBlob:
    """Tests for single-request blob upload."""

    def test_blob_upload(self, transport, make_file):
        """Test that the file is streamed with filename and group id."""
        path = make_file("app.ipa", 64)
        url = BASE_URL + "mam/blobs/uploadblob"

        with requests_mock.Mocker() as m:
            m.post(url, json={"Value": 4242})
            result = upload_app_blob(transport, path, "570")

        request = m.request_history[0]
        assert request.qs == {"filename": ["app.ipa"], "organizationgroupid": ["570"]}
        assert request.headers["Content-Type"] == "application/octet-stream"
        assert result.body == {"Value": 4242}
        assert result.total_size == 64

    def test_blob_requires_group_id(self, transport, make_file):
        """Test that a missing group id is a configuration error."""
        path = make_file("app.ipa", 4)

        with pytest.raises(ConfigError, match="group id"):
            upload_app_blob(transport, path, None)

    def test_blob_rejected(self, transport, make_file):
        """Test that a failing blob upload raises with the status code."""
        path = make_file("app.ipa", 4)

        with requests_mock.Mocker() as m:
            m.post(BASE_URL + "mam/blobs/uploadblob", status_code=401)
            with pytest.raises(ServerRejectedError) as exc:
                upload_app_blob(transport, path, "570")

        assert exc.value.status_code == 401
