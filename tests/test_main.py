"""Tests for the command line pipeline."""

from kinship.main import main


def test_pipeline_output(gedcom_file, capsys):
    assert main([str(gedcom_file)]) == 0
    out = capsys.readouterr().out

    assert f"Parsing GEDCOM file: {gedcom_file}" in out
    assert "Found 5 persons and 4 relationships" in out
    assert "Rejected 1 relationships:" in out
    assert "No validation issues found" in out
    assert "Computing layout..." in out
    assert out.rstrip().endswith("Done!")


def test_focus_person(gedcom_file, capsys):
    assert main([str(gedcom_file), "--focus", "carol"]) == 0
    out = capsys.readouterr().out

    assert "Relationships of Carol Smith (2):" in out
    assert "    - child of Bob Smith, distance 1" in out
    assert "    - child of Alice Smith, distance 1" in out


def test_limit(gedcom_file, capsys):
    main([str(gedcom_file), "--limit", "1"])
    out = capsys.readouterr().out
    layout_lines = out.split("Computing layout...")[1].splitlines()
    assert len([line for line in layout_lines if line.startswith("    - ")]) == 1


def test_unknown_focus(gedcom_file, capsys):
    assert main([str(gedcom_file), "--focus", "Zed"]) == 1
    assert "No person matching 'Zed'" in capsys.readouterr().out
