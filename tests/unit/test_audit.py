"""
Unit tests for AuditLogWriter.
"""

from datetime import datetime, timezone

from ci_metrics.audit import AuditLogWriter


def test_writes_details(tmp_path, points):
    writer = AuditLogWriter(tmp_path / "log")

    path = writer.write(points[:1])

    text = path.read_text()
    assert path.parent == tmp_path / "log"
    assert path.suffix == ".log"
    assert text.startswith("=== Metric Submission Details ===")
    assert "DRY RUN" not in text
    assert "Metric: ci.workflow.duration" in text
    assert "Type: gauge (3)" in text
    assert "Unit: minutes" in text
    assert "Timestamp: 1706054675 (2024-01-24T00:04:35+00:00)" in text
    assert "Value: 15.5 minutes" in text
    assert "  env:ci" in text
    assert "  status:success" in text
    assert "Endpoint: /api/v2/series" in text
    assert text.rstrip().endswith("=" * 30)


def test_dry_run_marker(tmp_path, points):
    path = AuditLogWriter(tmp_path, dry_run=True).write(points)

    lines = path.read_text().splitlines()
    assert lines[1] == "DRY RUN - No actual API call will be made"
    assert sum(1 for line in lines if line.startswith("Metric:")) == 3


def test_no_collisions(tmp_path, points):
    """Back-to-back writes never overwrite each other."""
    writer = AuditLogWriter(tmp_path)

    paths = {writer.write(points) for _ in range(5)}

    assert len(paths) == 5
    assert len(list(tmp_path.iterdir())) == 5


def test_filename_has_no_colons(tmp_path, points):
    path = AuditLogWriter(tmp_path).write(points)
    assert ":" not in path.name


def test_filename_from_current_utc_time(tmp_path, points, monkeypatch):
    fixed = datetime(2025, 1, 24, 14, 4, 35, 123456, tzinfo=timezone.utc)
    monkeypatch.setattr("ci_metrics.audit.utc_now", lambda: fixed)

    path = AuditLogWriter(tmp_path).write(points)

    assert path.name == "2025-01-24T14-04-35-123456_00-00.log"
