"""End-to-end tests for the global options of the ``vestibule`` command.

Covered: ``-v``/``-q`` verbosity, ``-L`` logger levels (flag and environment),
``--debug`` formatting, the library prefix, and the flight recorder (flush on
WARNING, forced flush, disabling, truncation, startup diagnostics).
"""

import re
from pathlib import Path

import pytest

from vestibule import __version__
from vestibule.entrypoints.cli.main import vestibule

# pylint: disable=unused-argument

LOG_PATH = "flight_recorder.log"


def assert_in_output(pattern: str, output: str) -> None:
    if not re.search(pattern, output, re.MULTILINE):
        raise AssertionError(f"Pattern '{pattern}' not found in output:\n{output}")


def assert_not_in_output(pattern: str, output: str) -> None:
    if re.search(pattern, output, re.MULTILINE):
        raise AssertionError(f"Pattern '{pattern}' found in output:\n{output}")


def _read(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def test_help_lists_the_commands(runner):
    result = runner.invoke(vestibule, ["--help"])
    assert result.exit_code == 0
    for name in ("db", "users", "housekeep"):
        assert name in result.output


def test_version(runner):
    result = runner.invoke(vestibule, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_default_shows_warning(registered_log_demo, runner, fs):
    result = runner.invoke(vestibule, ["--no-flight-recorder", registered_log_demo])
    assert result.exit_code == 0
    assert_in_output("demo warning message", result.output)
    assert_not_in_output("demo info message", result.output)


def test_verbose_shows_info(registered_log_demo, runner, fs):
    result = runner.invoke(vestibule, ["-v", registered_log_demo])
    assert result.exit_code == 0
    assert_in_output("demo info message", result.output)
    assert_not_in_output("demo debug message", result.output)


def test_vv_shows_debug(registered_log_demo, runner, fs):
    result = runner.invoke(vestibule, ["-vv", registered_log_demo])
    assert result.exit_code == 0
    assert_in_output("demo debug message", result.output)


@pytest.mark.parametrize(
    ("flags", "shown", "hidden"),
    [
        (["-q"], "demo error message", "demo warning message"),
        (["-qq"], "demo critical message", "demo error message"),
    ],
)
def test_quiet(registered_log_demo, runner, fs, flags, shown, hidden):
    result = runner.invoke(vestibule, [*flags, registered_log_demo])
    assert result.exit_code == 0
    assert_in_output(shown, result.output)
    assert_not_in_output(hidden, result.output)


def test_libraries_are_quiet_by_default(registered_log_demo, runner, fs):
    result = runner.invoke(vestibule, ["-vv", registered_log_demo])
    assert result.exit_code == 0
    assert_not_in_output("library info message", result.output)
    assert_in_output(r"\[sqlalchemy\] library warning message", result.output)


@pytest.mark.parametrize(
    ("env", "cli_args"),
    [
        ({}, ["-vv", "-L", "sqlalchemy.engine=INFO"]),
        ({"VESTIBULE_LOGGER_LEVELS": "sqlalchemy.engine=INFO"}, ["-vv"]),
    ],
    ids=["cli-flag", "env-var"],
)
def test_logger_level_override(registered_log_demo, runner, fs, env, cli_args):
    result = runner.invoke(vestibule, [*cli_args, registered_log_demo], env=env)
    assert result.exit_code == 0
    assert_in_output("library info message", result.output)
    assert_not_in_output("library debug message", result.output)


def test_bad_logger_level(runner):
    result = runner.invoke(vestibule, ["-L", "sqlalchemy=LOUD", "db", "heads"])
    assert result.exit_code == 2
    assert_in_output("Invalid log level: LOUD", result.output)


def test_debug_mode_shows_paths(registered_log_demo, runner, fs):
    result = runner.invoke(vestibule, ["--debug", registered_log_demo])
    assert result.exit_code == 0
    assert_in_output(r"conftest\.py:\d+", result.output)


def test_debug_mode_is_off_by_default(registered_log_demo, runner, fs):
    result = runner.invoke(vestibule, [registered_log_demo])
    assert result.exit_code == 0
    assert_not_in_output(r"conftest\.py:\d+", result.output)


def test_flight_recorder_flushes_on_warning(registered_log_demo, runner, fs):
    result = runner.invoke(
        vestibule,
        ["--log-path", LOG_PATH, "-L", "sqlalchemy.engine=INFO", registered_log_demo],
    )
    assert result.exit_code == 0
    content = _read(LOG_PATH)
    # DEBUG is recorded regardless of the console level...
    assert_in_output("demo debug message", content)
    # ...but per-logger levels still apply
    assert_not_in_output("library debug message", content)
    assert_in_output("library info message", content)
    assert_in_output("demo critical message", content)
    # nothing is written after the last WARNING unless forced
    assert_not_in_output("demo trailing debug message", content)


@pytest.mark.parametrize(
    ("env", "cli_args"),
    [({}, ["--force-flush"]), ({"VESTIBULE_FORCE_FLUSH": "true"}, [])],
    ids=["cli-flag", "env-var"],
)
def test_flight_recorder_force_flush(registered_log_demo, runner, fs, env, cli_args):
    cli = ["--log-path", LOG_PATH, *cli_args, registered_log_demo]
    result = runner.invoke(vestibule, cli, env=env)
    assert result.exit_code == 0
    assert_in_output("demo trailing debug message", _read(LOG_PATH))


@pytest.mark.parametrize(
    ("env", "cli_args"),
    [({}, ["--no-flight-recorder"]), ({"VESTIBULE_FLIGHT_RECORDER": "0"}, [])],
    ids=["cli-flag", "env-var"],
)
def test_flight_recorder_can_be_disabled(
    registered_log_demo, runner, fs, env, cli_args
):
    cli = ["--log-path", LOG_PATH, *cli_args, registered_log_demo]
    result = runner.invoke(vestibule, cli, env=env)
    assert result.exit_code == 0
    assert not Path(LOG_PATH).exists()


def test_flight_recorder_truncates_between_runs(registered_log_demo, runner, fs):
    sizes = []
    for _ in range(2):
        result = runner.invoke(vestibule, ["--log-path", LOG_PATH, registered_log_demo])
        assert result.exit_code == 0
        sizes.append(len(_read(LOG_PATH).splitlines()))
    assert sizes[0] == sizes[1]


def test_startup_diagnostics(registered_log_demo, runner, fs):
    result = runner.invoke(
        vestibule,
        ["--log-path", "startup.log", "--force-flush", registered_log_demo],
        env={"VESTIBULE_LOGGER_LEVELS": "sqlalchemy.engine=INFO"},
    )
    assert result.exit_code == 0
    content = _read("startup.log")
    assert_in_output(r"VESTIBULE \d+\.\d+\.\d+", content)
    assert_in_output(r"console=WARNING", content)
    assert_in_output(r"flight-recorder=ON", content)
    assert_in_output(r"Python: \d+\.\d+", content)
    assert_in_output(r"SQLAlchemy: \d+\.\d+", content)
    assert_in_output(r"Alembic: \d+\.\d+", content)
    assert_in_output(r"bcrypt: \d+\.\d+", content)
    assert_in_output(
        r"Flight recorder: path=startup\.log, capacity=2000, flush_on_close=True",
        content,
    )
    assert_in_output(
        r"Per-logger overrides: \{'sqlalchemy': 'WARNING', 'alembic': 'WARNING', "
        r"'sqlalchemy\.engine': 'INFO'\}",
        content,
    )
