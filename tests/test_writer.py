import json
import os
import stat

import pytest

from addon_manifest import writer
from addon_manifest.exceptions import ManifestWriteError
from addon_manifest.models import Manifest, ManifestEntry

pytestmark = pytest.mark.unit


def _manifest():
    entry = ManifestEntry(
        id="seoulmap",
        name="서울 맵",
        author="mapper",
        description="",
        version="1.4.0",
        category="맵",
        repo="owner/omsi",
        release_tag="seoulmap-v1.4.0",
        published_at="2024-01-01T00:00:00Z",
        download_url="https://dl/seoul.7z",
        file_name="seoul.7z",
        size=1_572_864,
        size_mb=1.5,
    )
    return Manifest(generated_at="2024-01-02T00:00:00.000Z", entries=[entry])


def test_writes_primary_and_secondary(tmp_path):
    primary = tmp_path / "omsi-addons.json"
    secondary = tmp_path / "docs" / "nested" / "omsi-addons.json"

    writer.write_manifest(_manifest(), primary, secondary)

    text = primary.read_text(encoding="utf-8")
    assert "서울 맵" in text
    assert text.endswith("}\n")
    assert text.startswith('{\n  "generatedAt"')
    assert json.loads(text)["addons"][0]["sizeMB"] == 1.5
    assert secondary.read_text(encoding="utf-8") == text
    assert [p.name for p in tmp_path.iterdir() if p.name.startswith("tmp-")] == []


def test_overwrites_existing_file(tmp_path):
    primary = tmp_path / "omsi-addons.json"
    primary.write_text("stale", encoding="utf-8")

    writer.write_manifest(_manifest(), primary)

    assert json.loads(primary.read_text(encoding="utf-8"))["addons"][0]["id"] == (
        "seoulmap"
    )


def test_primary_failure_is_raised(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(ManifestWriteError) as excinfo:
        writer.write_manifest(_manifest(), blocker / "omsi-addons.json")

    assert excinfo.value.path.endswith("omsi-addons.json")


def test_secondary_failure_is_swallowed(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    primary = tmp_path / "omsi-addons.json"

    writer.write_manifest(_manifest(), primary, blocker / "omsi-addons.json")

    assert primary.exists()


def test_write_json_file_wraps_os_errors(tmp_path, mocker):
    mocker.patch.object(writer.os, "replace", side_effect=OSError("disk full"))

    with pytest.raises(ManifestWriteError, match="disk full"):
        writer.write_json_file(tmp_path / "out.json", {"addons": []})

    assert list(tmp_path.iterdir()) == []


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_written_manifest_is_world_readable(tmp_path):
    primary = tmp_path / "omsi-addons.json"

    writer.write_manifest(_manifest(), primary)

    assert stat.S_IMODE(primary.stat().st_mode) == 0o644
