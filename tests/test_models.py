"""Session model parsing and the status state machine."""

import pytest

from snabel_console.models import ArchiveAnalysis, Session, SessionStatus, StartResult, UploadResult
from snabel_console.models.status import ServiceStatus


class TestSessionStatus:
    @pytest.mark.parametrize("raw", ["RUNNING", "running", " Running "])
    def test_parse_known(self, raw):
        assert SessionStatus.parse(raw) is SessionStatus.RUNNING

    @pytest.mark.parametrize("raw", ["STOPPED", "", None, 7])
    def test_parse_unknown_falls_back(self, raw):
        assert SessionStatus.parse(raw) is SessionStatus.UNKNOWN

    def test_terminal(self):
        assert SessionStatus.MERGED.is_terminal
        assert SessionStatus.FAILED.is_terminal
        assert not SessionStatus.COMPLETED.is_terminal

    def test_transitions(self):
        assert SessionStatus.CREATED.can_transition_to(SessionStatus.UNPACKING)
        assert SessionStatus.CREATED.can_transition_to(SessionStatus.RUNNING)
        assert SessionStatus.RUNNING.can_transition_to(SessionStatus.PAUSED)
        assert SessionStatus.PAUSED.can_transition_to(SessionStatus.RUNNING)
        assert SessionStatus.COMPLETED.can_transition_to(SessionStatus.MERGED)
        assert SessionStatus.ANALYZING.can_transition_to(SessionStatus.FAILED)
        assert not SessionStatus.MERGED.can_transition_to(SessionStatus.FAILED)
        assert not SessionStatus.FAILED.can_transition_to(SessionStatus.RUNNING)
        assert not SessionStatus.CREATED.can_transition_to(SessionStatus.MERGED)


class TestSession:
    def test_from_wire(self):
        s = Session.model_validate({
            "sessionId": "abc", "description": "Migrate cart module", "status": "RUNNING",
            "createdAt": "2024-05-01T10:00:00", "merged": False, "isRunning": True,
            "branchName": "import/abc", "filesCreated": 3,
        })
        assert s.session_id == "abc"
        assert s.status is SessionStatus.RUNNING
        assert s.is_running
        assert s.branch_name == "import/abc"
        assert s.files_created == 3

    def test_unknown_status_renders(self):
        s = Session.model_validate({"sessionId": "x", "status": "HIBERNATING"})
        assert s.status is SessionStatus.UNKNOWN
        assert s.raw_status == "HIBERNATING"
        assert s.status_label == "UNKNOWN"

    def test_nulls(self):
        s = Session.model_validate({"sessionId": "x", "status": "CREATED", "merged": None,
                                    "isRunning": None, "createdAt": None})
        assert s.merged is False
        assert s.is_running is False
        assert s.created_at == ""

    def test_original_instructions_alias(self):
        s = Session.model_validate({"sessionId": "x", "originalInstructions": "use signals"})
        assert s.instructions == "use signals"

    def test_dump_by_alias(self):
        dumped = Session(session_id="x", status=SessionStatus.PAUSED).model_dump(by_alias=True)
        assert dumped["sessionId"] == "x"
        assert dumped["status"] == SessionStatus.PAUSED


def test_upload_and_start_results():
    up = UploadResult.model_validate({"analysis": {"totalFiles": 42, "typescriptFiles": 10,
                                                   "javascriptFiles": 5, "totalSizeMB": 1.23}})
    assert up.analysis == ArchiveAnalysis(total_files=42, typescript_files=10, javascript_files=5, total_size_mb=1.23)
    assert StartResult.model_validate({"branchName": "import/S"}).branch_name == "import/S"


def test_service_status():
    st = ServiceStatus.model_validate({"running": True, "portOpen": True})
    assert st.running and st.port_open
