"""Tests for the ingest and thread CLI commands."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from unittest.mock import MagicMock, patch

from content_ingest.config import ConfigError, IngestConfig
from content_ingest.twitter.api import TransportError
from content_ingest.twitter.models import Author, Post, Thread
from content_ingest.twitter.oembed import EmbedError, EmbedPost
from main import main

EMBED = EmbedPost(
    html='<blockquote><p>hello world https://t.co/x</p><a href="https://twitter.com/jack/status/20">March 21, 2006</a></blockquote>',
    author_name="jack",
)
URL = "https://x.com/jack/status/20"


def _thread() -> Thread:
    post = Post(
        id="21",
        author_id="42",
        text="more",
        created_at=datetime(2026, 10, 18, 15, 4, tzinfo=timezone.utc),
        conversation_id="20",
    )
    return Thread(
        conversation_id="20",
        posts=(post,),
        authors=MappingProxyType({"42": Author(id="42", display_name="Jack", handle="jack")}),
    )


class TestIngestCommand:
    def test_prints_title_and_document(self, capsys) -> None:
        with patch("content_ingest.cli.commands.ingest.load_config", return_value=IngestConfig()), patch(
            "content_ingest.handlers.twitter.fetch_embed", return_value=EMBED
        ):
            exit_code = main(["ingest", URL, "--no-thread"])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert out.startswith("jack on X: hello world \n")
        assert '<meta property="og:type" content="tweet" />' in out

    def test_writes_output_file(self, tmp_path: Path, capsys) -> None:
        output = tmp_path / "docs" / "status.html"
        with patch("content_ingest.cli.commands.ingest.load_config", return_value=IngestConfig()), patch(
            "content_ingest.handlers.twitter.fetch_embed", return_value=EMBED
        ):
            exit_code = main(["ingest", URL, "--no-thread", "--output", str(output)])

        assert exit_code == 0
        assert "dc:creator" in output.read_text(encoding="utf-8")
        assert f"Wrote {output}" in capsys.readouterr().out

    def test_unsupported_url(self, capsys) -> None:
        with patch("content_ingest.cli.commands.ingest.load_config", return_value=IngestConfig()):
            exit_code = main(["ingest", "https://example.com/article"])

        assert exit_code == 1
        assert "No content handler accepts" in capsys.readouterr().err

    def test_embed_failure(self, capsys) -> None:
        with patch("content_ingest.cli.commands.ingest.load_config", return_value=IngestConfig()), patch(
            "content_ingest.handlers.twitter.fetch_embed", side_effect=EmbedError("oEmbed down")
        ):
            exit_code = main(["ingest", URL, "--no-thread"])

        assert exit_code == 1
        assert "oEmbed down" in capsys.readouterr().err

    def test_config_error(self, capsys) -> None:
        with patch(
            "content_ingest.cli.commands.ingest.load_config",
            side_effect=ConfigError("bad config"),
        ):
            exit_code = main(["ingest", URL])

        assert exit_code == 1
        assert "Configuration error: bad config" in capsys.readouterr().err


class TestThreadCommand:
    def _run(self, argv: list[str], reconstructor: MagicMock) -> int:
        with patch("content_ingest.cli.commands.ingest.load_config", return_value=IngestConfig()), patch(
            "content_ingest.cli.commands.ingest.SharedBrowser"
        ), patch("content_ingest.cli.commands.ingest.TwitterApiClient"), patch(
            "content_ingest.cli.commands.ingest.ThreadReconstructor", return_value=reconstructor
        ):
            return main(argv)

    def test_prints_posts(self, capsys) -> None:
        reconstructor = MagicMock()
        reconstructor.reconstruct.return_value = _thread()

        exit_code = self._run(["thread", URL], reconstructor)

        assert exit_code == 0
        assert "[October 18, 2026 at 3:04 PM UTC] @jack: more" in capsys.readouterr().out

    def test_json_output(self, capsys) -> None:
        reconstructor = MagicMock()
        reconstructor.reconstruct.return_value = _thread()

        exit_code = self._run(["thread", URL, "--json"], reconstructor)

        payload = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert payload["conversation_id"] == "20"
        assert payload["posts"][0]["author"] == "jack"
        assert payload["posts"][0]["media"] == []

    def test_empty_thread(self, capsys) -> None:
        reconstructor = MagicMock()
        reconstructor.reconstruct.return_value = Thread(conversation_id="20")

        exit_code = self._run(["thread", URL], reconstructor)

        assert exit_code == 0
        assert "No posts found for conversation 20." in capsys.readouterr().out

    def test_api_failure(self, capsys) -> None:
        reconstructor = MagicMock()
        reconstructor.reconstruct.side_effect = TransportError("429 Too Many Requests", status_code=429)

        exit_code = self._run(["thread", URL], reconstructor)

        assert exit_code == 1
        assert "429" in capsys.readouterr().err

    def test_rejects_non_status_url(self, capsys) -> None:
        exit_code = main(["thread", "https://example.com/article"])

        assert exit_code == 1
        assert "is not a status URL" in capsys.readouterr().err
