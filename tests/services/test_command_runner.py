import sys

import pytest

from stackinit.errors import MalformedOutput, MissingTool, ProcessFailure, TimedOut
from stackinit.services.command_runner import CommandRunner


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


def _python(code):
    return [sys.executable, "-c", code]


def test_command_runner_raises_with_stderr():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(ProcessFailure, match="boom") as error:
        runner.run(_python("import sys; sys.stderr.write('boom'); sys.exit(3)"))

    assert error.value.exit_code == 3
    assert error.value.stderr == "boom"


def test_command_runner_returns_when_check_disabled():
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(_python("import sys; sys.exit(1)"), check=False)

    assert result.returncode == 1


def test_command_runner_parses_json_payload():
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(_python("print('[{\"id\": \"sub-1\"}]')"), parse_json=True)

    assert result.payload == [{"id": "sub-1"}]


def test_command_runner_falls_back_to_raw_text_when_not_json():
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(_python("print('p@ss{word')"), parse_json=True)

    assert result.payload == "p@ss{word"


def test_command_runner_leaves_payload_empty_without_parse_json():
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(_python("print('{}')"))

    assert result.payload is None
    assert result.stdout.strip() == "{}"


def test_run_json_rejects_unexpected_shape():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(MalformedOutput, match="JSON array"):
        runner.run_json(_python("print('{\"id\": 1}')"), expect=list)


def test_run_json_rejects_plain_text():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(ProcessFailure):
        runner.run_json(_python("print('Please log in first')"))


def test_command_runner_reports_missing_executable():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(MissingTool, match="stackinit-no-such-tool") as error:
        runner.run(["stackinit-no-such-tool", "--version"])

    assert error.value.tool == "stackinit-no-such-tool"


def test_command_runner_timeout_raises_error():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(TimedOut, match="timed out"):
        runner.run(_python("import time; time.sleep(2)"), timeout=0.1)


def test_command_runner_uses_default_timeout():
    runner = CommandRunner(logger=DummyLogger(), default_timeout=0.1)

    with pytest.raises(TimedOut):
        runner.run(_python("import time; time.sleep(2)"))


def test_command_runner_merges_extra_environment():
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(
        _python("import os; print(os.environ['GH_DEBUG'], 'PATH' in os.environ)"),
        env={"GH_DEBUG": "1"},
    )

    assert result.stdout.split() == ["1", "True"]


def test_command_runner_runs_in_working_directory(tmp_path):
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(_python("import os; print(os.getcwd())"), cwd=str(tmp_path))

    assert result.stdout.strip() == str(tmp_path.resolve())


def test_interactive_json_command_shows_stderr_and_decodes_stdout(capfd):
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(
        _python(
            "import sys; sys.stderr.write('To sign in, enter the code ABC123\\n'); "
            "print('[{\"id\": \"sub-1\", \"tenantId\": \"tenant-1\"}]')"
        ),
        parse_json=True,
        interactive=True,
    )

    assert result.payload == [{"id": "sub-1", "tenantId": "tenant-1"}]
    captured = capfd.readouterr()
    assert "ABC123" in captured.err
    assert "sub-1" not in captured.out


def test_interactive_command_without_json_streams_stdout(capfd):
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(_python("print('provisioning...')"), interactive=True)

    assert result.stdout == ""
    assert result.payload is None
    assert "provisioning..." in capfd.readouterr().out
