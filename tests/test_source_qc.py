import json

import source_qc


def _write_bundle(path, items):
    path.write_text(json.dumps({"primaryUrl": "https://acme.com", "items": items}), encoding="utf-8")
    return path


def _items(types):
    return [{"id": str(i), "url": f"https://acme.com/{t}", "type": t} for i, t in enumerate(types)]


def test_sufficient_bundle_passes(tmp_path, capsys):
    bundle = _write_bundle(tmp_path / "bundle.json", _items(["pricing", "docs", "reviews"]))
    exit_code = source_qc.main([str(bundle), "--threshold-sources", "3"])
    output = capsys.readouterr().out
    assert exit_code == 0
    assert "Coverage OK" in output


def test_directory_input_uses_default_filename(tmp_path, capsys):
    _write_bundle(tmp_path / source_qc.BUNDLE_FILENAME, _items(["pricing", "docs", "reviews"]))
    assert source_qc.main([str(tmp_path), "--threshold-sources", "3"]) == 0


def test_failed_checks_are_errors(tmp_path, capsys):
    bundle = _write_bundle(tmp_path / "thin.json", _items(["pricing"]))
    exit_code = source_qc.main([str(bundle)])
    output = capsys.readouterr().out
    assert exit_code == 1
    assert "ERROR: Need 5 sources, have 1" in output


def test_missing_and_unreadable_files(tmp_path, capsys):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    exit_code = source_qc.main([str(tmp_path / "absent.json"), str(broken)])
    output = capsys.readouterr().out
    assert exit_code == 1
    assert "does not exist" in output
    assert "unable to read bundle" in output


def test_dashboard(tmp_path, capsys):
    first = _write_bundle(tmp_path / "a.json", _items(["pricing", "docs", "reviews"]))
    second = _write_bundle(tmp_path / "b.json", _items(["pricing"]))
    source_qc.main([str(first), str(second), "--threshold-sources", "3", "--dashboard"])
    output = capsys.readouterr().out
    assert "Coverage dashboard:" in output
    assert "total_sources: min=1.0" in output
    assert "Insufficient bundles: 1 of 2" in output
