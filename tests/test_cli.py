"""
Tests for confessboard command line interface
"""

import pytest

from confessboard.__main__ import main, build_parser
from confessboard.cli.commands import service_options
from confessboard.core.service import ConfessionService
from confessboard.config import Config, DatabaseConfig, CryptoConfig, CredentialConfig


def run(argv):
    """Run the CLI and return its exit code."""
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return exc.value.code


class TestParser:
    """Tests for argument parsing."""

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_vote_direction_choices(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["vote", "sideways"])

    def test_post_joins_words(self):
        args = build_parser().parse_args(["post", "hello", "world", "--timestamp", "5"])

        assert args.text == ["hello", "world"]
        assert args.timestamp == 5


class TestCommands:
    """End-to-end tests of CLI commands against a temporary ledger."""

    @pytest.fixture(autouse=True)
    def setup_config(self, tmp_path, monkeypatch):
        self.tmp_path = tmp_path
        self.config_path = tmp_path / "confessboard.toml"

        config = Config()
        config.database = DatabaseConfig(path=str(tmp_path / "ledger.db"))
        config.crypto = CryptoConfig(argon2_time_cost=1, argon2_memory_kb=8192, argon2_parallelism=1)
        config.credential = CredentialConfig(
            path=str(tmp_path / "credential.bin"),
            passphrase_env="CONFESSBOARD_TEST_PASSPHRASE"
        )
        config.save(self.config_path)

        monkeypatch.setenv("CONFESSBOARD_TEST_PASSPHRASE", "test passphrase")

    def _cli(self, *argv):
        return run(["-c", str(self.config_path), *argv])

    def _deploy(self, capsys) -> str:
        assert self._cli("deploy") == 0
        out = capsys.readouterr().out
        return out.strip().split()[-1]

    def test_init_config_refuses_overwrite(self):
        assert self._cli("init-config") == 1

    def test_init_config_new_file(self, tmp_path):
        path = tmp_path / "other.toml"

        assert run(["-c", str(path), "init-config"]) == 0
        assert path.exists()

    def test_show_without_board(self, capsys):
        assert self._cli("show") == 1
        assert "No board selected" in capsys.readouterr().out

    def test_unknown_board(self, capsys):
        assert self._cli("--board", "cd" * 16, "show") == 1
        assert "No board at address" in capsys.readouterr().out

    def test_post_and_show(self, capsys):
        """Test a full deploy, post, show cycle."""
        address = self._deploy(capsys)

        assert self._cli("--board", address, "post", "hello", "there", "--timestamp", "1000") == 0
        out = capsys.readouterr().out
        assert "hello there" in out
        assert "(you)" in out

        assert self._cli("--board", address, "show") == 0
        assert "hello there" in capsys.readouterr().out

    def test_second_post_rejected(self, capsys):
        address = self._deploy(capsys)
        self._cli("--board", address, "post", "first")
        capsys.readouterr()

        assert self._cli("--board", address, "post", "second") == 1
        assert "already has a confession" in capsys.readouterr().out

    def test_vote_own_confession_needs_flag(self, capsys):
        """Test the CLI discourages voting on your own confession."""
        address = self._deploy(capsys)
        self._cli("--board", address, "post", "mine")
        capsys.readouterr()

        assert self._cli("--board", address, "vote", "up") == 1
        assert "--allow-self" in capsys.readouterr().out

        assert self._cli("--board", address, "vote", "up", "--allow-self") == 0
        assert "up 1  down 0" in capsys.readouterr().out

    def test_vote_empty_board(self, capsys):
        address = self._deploy(capsys)

        assert self._cli("--board", address, "vote", "down") == 1
        assert "No confession to vote on" in capsys.readouterr().out

    def test_boards(self, capsys):
        address = self._deploy(capsys)

        assert self._cli("boards") == 0
        assert address in capsys.readouterr().out

    def test_watch_count(self, capsys):
        address = self._deploy(capsys)

        assert self._cli("--board", address, "watch", "--count", "1", "--interval", "0.01") == 0
        assert "No confession yet" in capsys.readouterr().out

    def test_wrong_passphrase(self, capsys, monkeypatch):
        address = self._deploy(capsys)
        monkeypatch.setenv("CONFESSBOARD_TEST_PASSPHRASE", "something else")

        assert self._cli("--board", address, "show") == 1
        assert "Credential error" in capsys.readouterr().out

    def test_invalid_config(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text('[board]\naddress = "zz"\n')

        assert run(["-c", str(path), "boards"]) == 1


class TestServiceOptions:
    """Tests for service settings taken from configuration."""

    def test_options_from_config(self):
        config = Config()
        config.board.max_content_length = 140
        config.watch.poll_interval_seconds = 0.25

        assert service_options(config) == {"max_content_length": 140, "poll_interval": 0.25}

    def test_deploy_uses_watch_interval(self, tmp_path, monkeypatch, capsys):
        """Test deploy builds its service with the configured poll interval."""
        config = Config()
        config.database = DatabaseConfig(path=str(tmp_path / "ledger.db"))
        config.crypto = CryptoConfig(argon2_time_cost=1, argon2_memory_kb=8192, argon2_parallelism=1)
        config.credential = CredentialConfig(
            path=str(tmp_path / "credential.bin"),
            passphrase_env="CONFESSBOARD_TEST_PASSPHRASE"
        )
        config.watch.poll_interval_seconds = 0.25
        config_path = tmp_path / "confessboard.toml"
        config.save(config_path)
        monkeypatch.setenv("CONFESSBOARD_TEST_PASSPHRASE", "test passphrase")

        created = []
        original_init = ConfessionService.__init__

        def recording_init(service, *args, **kwargs):
            original_init(service, *args, **kwargs)
            created.append(service)

        monkeypatch.setattr(ConfessionService, "__init__", recording_init)

        assert run(["-c", str(config_path), "deploy"]) == 0
        assert created[0].poll_interval == 0.25
