# SPDX-License-Identifier: LGPL-3.0-or-later
from unittest.mock import Mock

import pytest

from devdrive.core.exceptions import ProbeError
from devdrive.workspace.models import ImageState
from devdrive.workspace.probe import ImageProbe


@pytest.mark.unit
class TestImageProbe:
    def test_absent_never_asks_platform(self, logger, platform, tmp_path):
        d = ImageProbe(logger, platform).probe(tmp_path / "ws.vhdx", 1024**3)

        assert d.state is ImageState.ABSENT
        assert d.size_limit_bytes == 1024**3
        assert platform.calls == []

    def test_present_detached(self, logger, platform, tmp_path):
        path = tmp_path / "ws.vhdx"
        platform.seed_image(path)

        d = ImageProbe(logger, platform).probe(path)

        assert d.state is ImageState.PRESENT_DETACHED
        assert d.disk_number is None
        assert platform.mutations() == []

    def test_present_attached(self, logger, platform, tmp_path):
        path = tmp_path / "ws.vhdx"
        platform.seed_image(path, attached_disk=3)

        d = ImageProbe(logger, platform).probe(path)

        assert d.state is ImageState.PRESENT_ATTACHED
        assert d.disk_number == 3

    def test_foreign_file_is_probe_error(self, logger, platform, tmp_path):
        path = tmp_path / "notes.vhdx"
        path.write_text("not a disk")

        with pytest.raises(ProbeError) as ei:
            ImageProbe(logger, platform).probe(path)

        assert ei.value.context["path"] == str(path)
        assert ei.value.code == 11

    def test_unexpected_platform_error_wrapped(self, logger, tmp_path):
        path = tmp_path / "ws.vhdx"
        path.write_bytes(b"x")
        plat = Mock()
        plat.query_image_metadata.side_effect = RuntimeError("WMI unavailable")

        with pytest.raises(ProbeError) as ei:
            ImageProbe(logger, plat).probe(path)

        assert isinstance(ei.value.cause, RuntimeError)
        assert "WMI unavailable" in ei.value.msg

    @pytest.mark.parametrize(
        "exists,attached,expected",
        [
            (False, False, ImageState.ABSENT),
            (True, False, ImageState.PRESENT_DETACHED),
            (True, True, ImageState.PRESENT_ATTACHED),
        ],
    )
    def test_exactly_one_state(self, logger, platform, tmp_path, exists, attached, expected):
        path = tmp_path / "ws.vhdx"
        if exists:
            platform.seed_image(path, attached_disk=2 if attached else None)

        d = ImageProbe(logger, platform).probe(path)

        states = [s for s in ImageState if s is d.state]
        assert states == [expected]
