"""End-to-end tests of the datebisect command with real collaborators."""

import re

import pytest
from pydantic_settings import CliApp

from datebisect.cli import CliState
from datebisect.core.log import ConsoleSink, setup_logger


@pytest.fixture(autouse=True)
def _env(clean_env):
    """Each run reconfigures logging; restore the test logger after."""
    yield
    setup_logger(console=ConsoleSink(level="debug"))


def result_lines(out: str) -> list[str]:
    """The two bounds printed on success."""
    return [
        re.search(r"^later than:\s+(.+)$", out, re.M).group(1),
        re.search(r"^earlier than:\s+(.+)$", out, re.M).group(1),
    ]


def write_config(path, settings: dict):
    path.write_text(
        "".join(f'{key.upper()}="{value}"\n' for key, value in settings.items())
    )
    return path


def run_cli(config_path) -> int:
    with pytest.raises(SystemExit) as excinfo:
        CliApp.run(CliState, cli_args=[str(config_path)])
    return excinfo.value.code


def test_converged_search(scripts, tmp_path, capsys):
    config = write_config(tmp_path / "search.conf", scripts.settings())

    assert run_cli(config) == 0

    later, earlier = result_lines(capsys.readouterr().out)
    assert later < "2024-01-05 12:00 +0000" <= earlier
    # Two endpoint checks plus eight midpoints
    assert len(scripts.calls("test")) == 10
    assert len(scripts.calls("build")) == 10


def test_delta_below_minimum_runs_nothing(scripts, tmp_path, capsys):
    config = write_config(
        tmp_path / "search.conf", scripts.settings(delta=100)
    )

    assert run_cli(config) != 0

    assert "ERROR:" in capsys.readouterr().err
    assert scripts.calls() == []


def test_missing_config_file(tmp_path, capsys):
    assert run_cli(tmp_path / "absent.conf") != 0
    assert "not found" in capsys.readouterr().err


def test_unexpected_low_endpoint(scripts, tmp_path, capsys):
    always_after = scripts.write("test", 'record("test")\nsys.exit(0)')
    config = write_config(
        tmp_path / "search.conf", scripts.settings(reg_test=always_after)
    )

    assert run_cli(config) == 1

    captured = capsys.readouterr()
    assert "low date" in captured.err
    assert "Resume with" not in captured.out
    assert len(scripts.calls("update")) == 1
    assert len(scripts.calls("build")) == 1
    assert len(scripts.calls("test")) == 1


def test_finish_hook_runs_after_convergence(scripts, tmp_path):
    config = write_config(
        tmp_path / "search.conf",
        scripts.settings(reg_finish=scripts.passing("finish"), delta=86400),
    )

    assert run_cli(config) == 0

    [finish] = scripts.calls("finish")
    assert finish[1] < "2024-01-05 12:00 +0000" <= finish[2]


def test_change_oracle_skips_builds(scripts, tmp_path, capsys):
    """An oracle that recognizes everything outside the change's day
    saves builds without changing the answer."""
    plain = write_config(tmp_path / "plain.conf", scripts.settings())
    assert run_cli(plain) == 0
    expected = result_lines(capsys.readouterr().out)
    plain_builds = len(scripts.calls("build"))
    scripts.calls_file.unlink()

    oracle = scripts.write(
        "oracle",
        'record("oracle")\n'
        'date = sys.argv[1]\n'
        'if date < "2024-01-05":\n'
        '    sys.exit(1)\n'
        'if date >= "2024-01-06":\n'
        '    sys.exit(2)\n'
        'sys.exit(0)',
    )
    fast = write_config(
        tmp_path / "fast.conf", scripts.settings(has_changes=oracle)
    )
    assert run_cli(fast) == 0

    assert result_lines(capsys.readouterr().out) == expected
    assert len(scripts.calls("build")) < plain_builds
    assert len(scripts.calls("oracle")) == 8


def test_resume_after_build_failure(scripts, tmp_path, capsys):
    """A failure mid-search prints settings that resume it."""
    flaky_build = scripts.write(
        "build",
        'record("build")\n'
        f'with open({str(scripts.calls_file)!r}) as f:\n'
        '    builds = sum(1 for line in f if line.startswith("build|"))\n'
        'sys.exit(1 if builds >= 6 else 0)',
    )
    settings = scripts.settings(reg_build=flaky_build)
    config = write_config(tmp_path / "search.conf", settings)

    assert run_cli(config) == 1

    captured = capsys.readouterr()
    assert "Build failed" in captured.err
    resume = [
        line for line in captured.out.splitlines()
        if re.match(r"^(LOW_DATE|HIGH_DATE|SKIP_LOW|SKIP_HIGH)=", line)
    ]
    assert len(resume) == 4

    resumed = tmp_path / "resume.conf"
    resumed.write_text(
        "\n".join(resume) + "\n"
        f"REG_UPDATE={settings['reg_update']}\n"
        f"REG_BUILD={scripts.passing('build')}\n"
        f"REG_TEST={settings['reg_test']}\n"
    )
    scripts.calls_file.unlink()

    assert run_cli(resumed) == 0

    later, earlier = result_lines(capsys.readouterr().out)
    assert later < "2024-01-05 12:00 +0000" <= earlier
    # Both endpoints were trusted, so only midpoints were probed
    endpoints = {line.split("=", 1)[1].strip('"') for line in resume[:2]}
    probed = {call[1] for call in scripts.calls("update")}
    assert probed
    assert not probed & endpoints
