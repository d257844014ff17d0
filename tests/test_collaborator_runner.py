"""Tests for CollaboratorRunner."""

from datebisect.runner.collaborator import CollaboratorRunner


def test_successful_collaborator(scripts):
    runner = CollaboratorRunner()
    result = runner.run("update", scripts.passing("update"), "2024-01-05 12:00 +0000")

    assert result.success is True
    assert result.returncode == 0
    assert result.name == "update"
    assert result.log_file is None
    assert result.timestamp is not None


def test_exit_code_reported(scripts):
    failing = scripts.write("build", 'record("build")\nsys.exit(7)')

    result = CollaboratorRunner().run("build", failing, "2024-01-05 12:00 +0000")

    assert result.success is False
    assert result.returncode == 7


def test_date_arguments_passed_intact(scripts):
    """Dates contain spaces and a '+'; each must arrive as one argument."""
    script = scripts.passing("oracle")

    CollaboratorRunner().run(
        "oracle", script, "2024-01-05 12:00 +0000", "2024-01-01 00:00 +0000"
    )

    assert scripts.calls("oracle") == [
        ["oracle", "2024-01-05 12:00 +0000", "2024-01-01 00:00 +0000"]
    ]


def test_runs_in_workdir(scripts, tmp_path):
    workdir = tmp_path / "tree"
    workdir.mkdir()
    script = scripts.write(
        "update",
        'record("update")\nopen("here", "w").close()\nsys.exit(0)',
    )

    CollaboratorRunner(workdir=workdir).run("update", script, "2024-01-05")

    assert (workdir / "here").exists()


def test_output_saved_to_log_file(scripts, tmp_path):
    output_dir = tmp_path / "nonexistent" / "logs"
    script = scripts.write(
        "build", 'print("compiling " + sys.argv[1])\nsys.exit(0)'
    )

    runner = CollaboratorRunner(output_dir=output_dir)
    first = runner.run("build", script, "2024-01-05")
    second = runner.run("build", script, "2024-01-06")

    assert output_dir.exists()
    assert "compiling 2024-01-05" in first.log_file.read_text()
    assert "compiling 2024-01-06" in second.log_file.read_text()
    assert first.log_file.read_text().endswith("[exit 0]\n")
    assert first.log_file != second.log_file
    assert "build" in first.log_file.name
