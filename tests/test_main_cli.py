from pathlib import Path

from main import _parse_args, main


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "127.0.0.1", "--port", "8080"])
    assert args.command == "serve"
    assert args.host == "127.0.0.1"
    assert args.port == 8080


def test_init_data_creates_empty_collections(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("SENNIGHT_TOKEN_SECRET", "cli-tests")
    monkeypatch.setenv("SENNIGHT_CONFIG", "")
    data_dir = tmp_path / "data"

    assert main(["init-data", "--data-dir", str(data_dir)]) == 0

    for name in ("users", "matches", "messages"):
        assert (data_dir / f"{name}.json").read_text(encoding="utf-8") == "[]"


def test_users_lists_registered_accounts(tmp_path: Path, monkeypatch, capsys) -> None:
    from sennight.profiles import ProfileRegistry
    from sennight.store import CollectionStore

    monkeypatch.setenv("SENNIGHT_TOKEN_SECRET", "cli-tests")
    data_dir = tmp_path / "data"
    ProfileRegistry(CollectionStore(data_dir)).register("alice@example.com", "pw", "Alice")

    assert main(["users", "--data-dir", str(data_dir)]) == 0

    output = capsys.readouterr().out
    assert "1 user(s) found" in output
    assert "alice@example.com" in output
