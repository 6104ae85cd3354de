"""Tests for the unsubscribe CLI command."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

from content_ingest.config import IngestConfig
from main import main


def _write(tmp_path: Path, payload) -> Path:
    path = tmp_path / "subscriptions.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


class TestUnsubscribeCommand:
    def test_dry_run_reports_summary(self, tmp_path: Path, capsys) -> None:
        path = _write(
            tmp_path,
            [
                {
                    "id": "a",
                    "name": "Weekly",
                    "unsubscribe_mail_to": "list@example.com?subject=Stop",
                    "newsletter_email": "me@example.com",
                },
                {"id": "b", "name": "Feed", "type": "RSS"},
            ],
        )

        with patch("content_ingest.cli.commands.unsubscribe.load_config", return_value=IngestConfig()):
            exit_code = main(["unsubscribe", "--subscriptions", str(path), "--dry-run"])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "(dry run) would email list@example.com from me@example.com: Stop" in out
        assert "a: email delivered" in out
        assert "b: marked unsubscribed (no delivery method)" in out
        assert "Success: 2, Delivered: 1, Failed: 0" in out

    def test_dry_run_sends_no_http_requests(self, tmp_path: Path, capsys) -> None:
        path = _write(
            tmp_path,
            [{"id": "a", "name": "Weekly", "unsubscribe_http_url": "https://news.example/unsub"}],
        )

        with patch("content_ingest.cli.commands.unsubscribe.load_config", return_value=IngestConfig()), patch(
            "content_ingest.subscriptions.unsubscribe.requests.get"
        ) as mock_get:
            exit_code = main(["unsubscribe", "--subscriptions", str(path), "--dry-run"])

        out = capsys.readouterr().out
        assert exit_code == 0
        mock_get.assert_not_called()
        assert "(dry run) would request https://news.example/unsub" in out
        assert "a: http delivered" in out

    def test_http_unsubscribe_without_dry_run(self, tmp_path: Path, capsys) -> None:
        path = _write(
            tmp_path,
            [{"id": "a", "name": "Weekly", "unsubscribe_http_url": "https://news.example/unsub"}],
        )
        config = IngestConfig(unsubscribe_timeout=3.0)

        with patch("content_ingest.cli.commands.unsubscribe.load_config", return_value=config), patch(
            "content_ingest.subscriptions.unsubscribe.requests.get"
        ) as mock_get:
            exit_code = main(["unsubscribe", "--subscriptions", str(path)])

        assert exit_code == 0
        mock_get.assert_called_once_with("https://news.example/unsub", timeout=3.0)
        assert "a: http delivered" in capsys.readouterr().out

    def test_from_address_override(self, tmp_path: Path, capsys) -> None:
        path = _write(
            tmp_path,
            [{"id": "a", "name": "Weekly", "unsubscribe_mail_to": "list@example.com"}],
        )

        with patch("content_ingest.cli.commands.unsubscribe.load_config", return_value=IngestConfig()):
            exit_code = main(
                ["unsubscribe", "--subscriptions", str(path), "--dry-run", "--from-address", "ops@example.com"]
            )

        assert exit_code == 0
        assert "would email list@example.com from ops@example.com: Unsubscribe" in capsys.readouterr().out

    def test_uses_smtp_sender_without_dry_run(self, tmp_path: Path, capsys) -> None:
        path = _write(
            tmp_path,
            [
                {
                    "id": "a",
                    "name": "Weekly",
                    "unsubscribe_mail_to": "list@example.com",
                    "newsletter_email": "me@example.com",
                }
            ],
        )
        config = IngestConfig(smtp_host="mail.example", smtp_port=587)

        with patch("content_ingest.cli.commands.unsubscribe.load_config", return_value=config), patch(
            "content_ingest.subscriptions.unsubscribe.smtplib.SMTP"
        ) as mock_smtp:
            mock_smtp.return_value.__enter__.return_value.send_message.return_value = {}
            exit_code = main(["unsubscribe", "--subscriptions", str(path)])

        assert exit_code == 0
        mock_smtp.assert_called_once_with("mail.example", 587, timeout=10.0)
        assert "a: email delivered" in capsys.readouterr().out

    def test_rejects_non_list_file(self, tmp_path: Path, capsys) -> None:
        path = _write(tmp_path, {"id": "a"})

        with patch("content_ingest.cli.commands.unsubscribe.load_config", return_value=IngestConfig()):
            exit_code = main(["unsubscribe", "--subscriptions", str(path)])

        assert exit_code == 1
        assert "must contain a JSON list" in capsys.readouterr().err

    def test_missing_file(self, tmp_path: Path, capsys) -> None:
        with patch("content_ingest.cli.commands.unsubscribe.load_config", return_value=IngestConfig()):
            exit_code = main(["unsubscribe", "--subscriptions", str(tmp_path / "nope.json")])

        assert exit_code == 1
        assert "Initialization error" in capsys.readouterr().err
