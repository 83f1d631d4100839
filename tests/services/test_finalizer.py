"""Tests for session state and finalization."""

from __future__ import annotations

import pytest

from objupload.app.services.base import (
    InvalidSessionTransitionError,
    SessionCompleteError,
)
from objupload.app.services.finalizer import SessionFinalizer, order_part_results
from objupload.app.services.session import PartResult, SessionState, UploadSession
from objupload.infra.storage.client import CompletedPart


@pytest.fixture()
def session(mock_storage):
    upload = mock_storage.init_multipart_upload(bucket="bucket", object_key="key")
    session = UploadSession(session_id=upload.upload_id, bucket="bucket", object_key="key")
    session.transition_to(SessionState.PARTS_IN_FLIGHT)
    return session


class TestUploadSession:
    def test_starts_created(self):
        session = UploadSession(session_id="u1", bucket="b", object_key="k")
        assert session.state is SessionState.CREATED
        assert not session.is_terminal

    @pytest.mark.parametrize(
        "path",
        [
            [SessionState.ABORTED],
            [SessionState.PARTS_IN_FLIGHT, SessionState.ABORTED],
            [SessionState.PARTS_IN_FLIGHT, SessionState.COMPLETING, SessionState.ABORTED],
            [SessionState.PARTS_IN_FLIGHT, SessionState.COMPLETING, SessionState.COMPLETED],
        ],
    )
    def test_allowed_paths(self, path):
        session = UploadSession(session_id="u1", bucket="b", object_key="k")
        for state in path:
            session.transition_to(state)
        assert session.is_terminal

    @pytest.mark.parametrize(
        ("path", "illegal"),
        [
            ([], SessionState.COMPLETING),
            ([], SessionState.COMPLETED),
            ([SessionState.PARTS_IN_FLIGHT], SessionState.CREATED),
            ([SessionState.ABORTED], SessionState.PARTS_IN_FLIGHT),
            ([SessionState.ABORTED], SessionState.ABORTED),
            (
                [SessionState.PARTS_IN_FLIGHT, SessionState.COMPLETING, SessionState.COMPLETED],
                SessionState.ABORTED,
            ),
        ],
    )
    def test_illegal_transitions(self, path, illegal):
        session = UploadSession(session_id="u1", bucket="b", object_key="k")
        for state in path:
            session.transition_to(state)

        with pytest.raises(InvalidSessionTransitionError, match="Cannot move upload u1"):
            session.transition_to(illegal)


class TestOrderPartResults:
    def test_sorts_by_number(self):
        results = [PartResult(3, "c"), PartResult(1, "a"), PartResult(2, "b")]

        assert [r.token for r in order_part_results(results)] == ["a", "b", "c"]

    def test_rejects_gaps(self):
        with pytest.raises(SessionCompleteError, match=r"missing=\[2\]"):
            order_part_results([PartResult(1, "a"), PartResult(3, "c")])

    def test_rejects_duplicates(self):
        with pytest.raises(SessionCompleteError, match=r"duplicated=\[1\]"):
            order_part_results([PartResult(1, "a"), PartResult(1, "b")])

    def test_rejects_not_starting_at_one(self):
        with pytest.raises(SessionCompleteError):
            order_part_results([PartResult(2, "b")])

    def test_empty(self):
        assert order_part_results([]) == []


class TestSessionFinalizer:
    def test_complete_sends_ordered_tokens(self, mock_storage, session):
        finalizer = SessionFinalizer(mock_storage)

        finalizer.complete(session, [PartResult(2, "etag-2"), PartResult(1, "etag-1")])

        assert session.state is SessionState.COMPLETED
        [(_, parts)] = [c for c in mock_storage.calls if c[0] == "complete_multipart_upload"]
        assert parts == [
            CompletedPart(part_number=1, etag="etag-1"),
            CompletedPart(part_number=2, etag="etag-2"),
        ]

    def test_gap_aborts_without_completing(self, mock_storage, session):
        finalizer = SessionFinalizer(mock_storage)

        with pytest.raises(SessionCompleteError, match="not contiguous"):
            finalizer.complete(session, [PartResult(1, "a"), PartResult(3, "c")])

        assert session.state is SessionState.ABORTED
        assert mock_storage.count("complete_multipart_upload") == 0
        assert mock_storage.count("abort_multipart_upload") == 1

    def test_complete_failure_reports_abort_failure(self, mock_storage, session):
        mock_storage.fail_complete = True
        mock_storage.fail_abort = True
        finalizer = SessionFinalizer(mock_storage)

        with pytest.raises(SessionCompleteError) as excinfo:
            finalizer.complete(session, [PartResult(1, "a")])

        assert "complete refused" in str(excinfo.value)
        assert "abort refused" in str(excinfo.value.abort_error)
        assert session.state is SessionState.ABORTED

    def test_abort_returns_none_on_success(self, mock_storage, session):
        finalizer = SessionFinalizer(mock_storage)

        assert finalizer.abort(session) is None
        assert session.state is SessionState.ABORTED
        assert mock_storage.uploads[session.session_id]["aborted"] is True

    def test_abort_swallows_and_returns_store_error(self, mock_storage, session, caplog):
        mock_storage.fail_abort = True
        finalizer = SessionFinalizer(mock_storage)

        with caplog.at_level("ERROR", logger="objupload.upload"):
            error = finalizer.abort(session)

        assert "abort refused" in str(error)
        assert session.state is SessionState.ABORTED
        assert any("multipart_abort_failed" in r.getMessage() for r in caplog.records)
