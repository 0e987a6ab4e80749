"""Tests for YtDlpDownloader: output discovery and error wrapping."""

from unittest.mock import MagicMock, patch

import pytest

from chat_jukebox.config.settings import DownloadSettings
from chat_jukebox.domain.shared.exceptions import DownloadFailure
from chat_jukebox.infrastructure.audio.ytdlp_downloader import YtDlpDownloader

URL = "https://www.youtube.com/watch?v=abc"


@pytest.fixture
def downloader():
    return YtDlpDownloader(DownloadSettings(audio_format="opus"))


def _writer(*names, info=None):
    def fake_download(url, destination):
        destination.parent.mkdir(parents=True, exist_ok=True)
        for name in names:
            (destination.parent / f"{destination.name}{name}").write_bytes(b"data")
        return info

    return fake_download


class TestDownload:
    async def test_finds_audio_and_thumbnail(self, downloader, tmp_path):
        destination = tmp_path / "media" / "track1"

        with patch.object(
            downloader, "_download_sync", side_effect=_writer(".opus", ".webp", info={"duration": 90})
        ):
            result = await downloader.download(URL, destination)

        assert result.path == str(tmp_path / "media" / "track1.opus")
        assert result.thumbnail_path == str(tmp_path / "media" / "track1.webp")
        assert result.duration_ms == 90_000

    async def test_falls_back_to_other_container(self, downloader, tmp_path):
        destination = tmp_path / "track2"

        with patch.object(downloader, "_download_sync", side_effect=_writer(".m4a", ".m4a.part")):
            result = await downloader.download(URL, destination)

        assert result.path.endswith("track2.m4a")
        assert result.thumbnail_path is None
        assert result.duration_ms is None

    async def test_partial_files_are_not_media(self, downloader, tmp_path):
        destination = tmp_path / "track3"

        with patch.object(downloader, "_download_sync", side_effect=_writer(".webm.part", ".jpg")):
            with pytest.raises(DownloadFailure):
                await downloader.download(URL, destination)

    async def test_extractor_error_is_wrapped(self, downloader, tmp_path):
        with patch.object(downloader, "_download_sync", side_effect=RuntimeError("403 Forbidden")):
            with pytest.raises(DownloadFailure) as exc_info:
                await downloader.download(URL, tmp_path / "track4")

        assert exc_info.value.url == URL
        assert "403 Forbidden" in exc_info.value.reason

    async def test_other_tracks_files_are_ignored(self, downloader, tmp_path):
        (tmp_path / "track10.opus").write_bytes(b"other")

        with patch.object(downloader, "_download_sync", side_effect=_writer()):
            with pytest.raises(DownloadFailure):
                await downloader.download(URL, tmp_path / "track1")


class TestOptions:
    def test_download_options(self, downloader, tmp_path):
        destination = tmp_path / "abc"

        with patch("chat_jukebox.infrastructure.audio.ytdlp_downloader.YoutubeDL") as mock_cls:
            ydl = MagicMock()
            ydl.extract_info.return_value = {"title": "x"}
            mock_cls.return_value.__enter__.return_value = ydl

            data = downloader._download_sync(URL, destination)

        params = mock_cls.call_args.kwargs["params"]
        assert params["skip_download"] is False
        assert params["outtmpl"] == f"{destination}.%(ext)s"
        assert params["postprocessors"][0]["preferredcodec"] == "opus"
        ydl.extract_info.assert_called_once_with(URL, download=True)
        assert data == {"title": "x"}
