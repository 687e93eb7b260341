# SPDX-License-Identifier: LGPL-3.0-or-later
import pytest

from devdrive.core.exceptions import (
    AllocationError,
    AttachError,
    FormatError,
    InitError,
    PartitionError,
)
from devdrive.workspace.compensator import FailureCompensator
from devdrive.workspace.models import AttachmentRequest, DiskImageDescriptor
from devdrive.workspace.provisioning import ProvisioningPipeline, ProvisionStage

from fakes.fake_logger import FakeLogger

GB = 1024**3


def _run(logger, platform, path):
    pipe = ProvisioningPipeline(logger, platform, filesystem="ReFS", label="workspaces")
    comp = FailureCompensator(logger, platform)
    req = AttachmentRequest(DiskImageDescriptor(resolved_path=path, size_limit_bytes=10 * GB))
    return comp, pipe, req


@pytest.mark.unit
class TestFailureCompensator:
    @pytest.mark.parametrize(
        "op,exc",
        [
            ("allocate", AllocationError(msg="no space")),
            ("attach", AttachError(msg="busy")),
            ("initialize", InitError(msg="io")),
            ("partition", PartitionError(msg="no room")),
            ("format", FormatError(msg="refs unsupported")),
        ],
    )
    def test_partial_image_removed_and_original_error_reraised(self, logger, platform, tmp_path, op, exc):
        path = tmp_path / "ws.vhdx"
        platform.fail_on[op] = exc
        comp, pipe, req = _run(logger, platform, path)

        with pytest.raises(type(exc)) as ei:
            comp.run(pipe, req)

        assert ei.value is exc
        assert not path.exists()
        assert str(path) not in platform.attached
        rep = comp.last_report
        assert rep.detach_attempted and rep.delete_attempted
        assert rep.deleted is True
        assert rep.warnings == ()

    def test_detach_happens_before_delete(self, logger, platform, tmp_path):
        path = tmp_path / "ws.vhdx"
        platform.fail_on["format"] = FormatError(msg="boom")
        comp, pipe, req = _run(logger, platform, path)

        with pytest.raises(FormatError):
            comp.run(pipe, req)

        names = platform.call_names()
        assert names[-2:] == ["detach", "delete"]

    def test_detach_failure_before_attach_is_silent(self, logger, platform, tmp_path):
        path = tmp_path / "ws.vhdx"
        platform.fail_on["allocate"] = AllocationError(msg="no space")
        comp, pipe, req = _run(logger, platform, path)

        with pytest.raises(AllocationError):
            comp.run(pipe, req)

        assert comp.last_report.detached is False
        assert comp.last_report.warnings == ()

    def test_delete_failure_becomes_warning(self, platform, tmp_path):
        fl = FakeLogger()
        path = tmp_path / "ws.vhdx"
        platform.fail_on["format"] = FormatError(msg="boom")
        platform.fail_on["delete"] = PermissionError("file in use")
        comp, pipe, req = _run(fl, platform, path)

        with pytest.raises(FormatError):
            comp.run(pipe, req)

        rep = comp.last_report
        assert rep.deleted is False
        assert [w.step for w in rep.warnings] == ["delete"]
        assert "file in use" in rep.warnings[0].message
        assert not rep.complete
        assert any("Cleanup incomplete" in m for m in fl.messages("warning"))

    def test_detach_failure_after_attach_reported(self, logger, platform, tmp_path):
        path = tmp_path / "ws.vhdx"
        platform.fail_on["partition"] = PartitionError(msg="no room")
        platform.fail_on["detach"] = AttachError(msg="Dismount-VHD failed")
        comp, pipe, req = _run(logger, platform, path)

        with pytest.raises(PartitionError):
            comp.run(pipe, req)

        steps = [w.step for w in comp.last_report.warnings]
        # still attached, so the delete fails too
        assert steps == ["detach", "delete"]
        assert path.exists()

    def test_compensate_never_raises(self, logger, platform, tmp_path):
        platform.fail_on["detach"] = RuntimeError("x")
        platform.fail_on["delete"] = OSError("y")
        comp = FailureCompensator(logger, platform)

        rep = comp.compensate(tmp_path / "ws.vhdx", last_stage=ProvisionStage.FORMATTED)

        assert {w.step for w in rep.warnings} == {"detach", "delete"}

    def test_success_leaves_no_report(self, logger, platform, tmp_path):
        path = tmp_path / "ws.vhdx"
        comp, pipe, req = _run(logger, platform, path)

        comp.run(pipe, req)

        assert comp.last_report is None
        assert path.exists()
        assert "delete" not in platform.call_names()
