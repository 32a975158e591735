from stackinit.services.filesystem import FileSystemService


class DummyLogger:
    def __init__(self):
        self.warnings = []

    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, message, *_args, **_kwargs):
        self.warnings.append(message)


class DummyConsole:
    def __init__(self):
        self.lines = []

    def print(self, message, *_args, **_kwargs):
        self.lines.append(message)


def test_remove_files_only_reports_existing_files(tmp_path):
    (tmp_path / "LICENSE.md").write_text("MIT", encoding="utf-8")
    service = FileSystemService(logger=DummyLogger(), console=DummyConsole())

    removed = service.remove_files(str(tmp_path), ["LICENSE.md", "CHANGELOG.md"])

    assert removed == ["LICENSE.md"]
    assert not (tmp_path / "LICENSE.md").exists()


def test_cleanup_dir_removes_tree(tmp_path):
    git_dir = tmp_path / ".git"
    (git_dir / "refs").mkdir(parents=True)
    (git_dir / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")
    service = FileSystemService(logger=DummyLogger(), console=DummyConsole())

    assert service.cleanup_dir(str(git_dir)) is True
    assert not git_dir.exists()
    assert service.cleanup_dir(str(git_dir)) is False


def test_cleanup_dir_warns_when_removal_fails(tmp_path, monkeypatch):
    target = tmp_path / ".git"
    target.mkdir()
    logger = DummyLogger()
    console = DummyConsole()
    service = FileSystemService(logger=logger, console=console)

    def fail(_path):
        raise PermissionError("denied")

    monkeypatch.setattr("stackinit.services.filesystem.shutil.rmtree", fail)

    assert service.cleanup_dir(str(target)) is False
    assert "denied" in logger.warnings[0]
    assert console.lines[0].startswith("[yellow]")
