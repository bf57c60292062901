"""Unit tests for the vault, HTTP and chained file loaders.

WHY: Loaders are the only place the engine touches the disk or network.
They must never raise for a missing file, and the vault loader must not
read outside its root.

HOW: VaultLoader against tmp_path; HttpLoader with an httpx.MockTransport
so no request leaves the process.
"""

import asyncio

import httpx

from audio_notes.loaders import ChainLoader, HttpLoader, VaultLoader


class TestVaultLoader:

    def test_reads_files_under_root(self, tmp_path):
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "t.json").write_text('{"segments": []}', encoding="utf-8")
        loader = VaultLoader(tmp_path)
        result = asyncio.run(loader(["sub/t.json", "missing.json"]))
        assert result == {"sub/t.json": '{"segments": []}'}

    def test_refuses_paths_outside_root(self, tmp_path):
        vault = tmp_path / "vault"
        vault.mkdir()
        (tmp_path / "secret.json").write_text("{}", encoding="utf-8")
        loader = VaultLoader(vault)
        assert loader.resolve("../secret.json") is None
        assert asyncio.run(loader(["../secret.json"])) == {}

    def test_extension_filter(self, tmp_path):
        (tmp_path / "t.srt").write_text("x", encoding="utf-8")
        (tmp_path / "t.txt").write_text("x", encoding="utf-8")
        loader = VaultLoader(tmp_path, extensions={".json", ".srt"})
        assert loader.resolve("t.srt") is not None
        assert loader.resolve("t.txt") is None

    def test_undecodable_file_is_skipped(self, tmp_path):
        (tmp_path / "bin.json").write_bytes(b"\xff\xfe\x00")
        assert asyncio.run(VaultLoader(tmp_path)(["bin.json"])) == {}

    def test_name_too_long_for_the_os_is_skipped(self, tmp_path):
        (tmp_path / "ok.json").write_text("{}", encoding="utf-8")
        loader = VaultLoader(tmp_path, extensions={".json"})
        long_name = "x" * 300 + ".json"
        assert loader.resolve(long_name) is None
        assert asyncio.run(loader([long_name, "ok.json"])) == {"ok.json": "{}"}


def _mock_client():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/ok.srt":
            return httpx.Response(200, text="1\n00:00:00,000 --> 00:00:01,000\nhi\n")
        if request.url.path == "/boom":
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(404, text="not found")

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestHttpLoader:

    def test_handles(self):
        assert HttpLoader.handles("https://example.com/t.json")
        assert HttpLoader.handles("http://example.com/t.json")
        assert not HttpLoader.handles("notes/t.json")

    def test_fetches_and_skips_failures(self):
        async def run():
            async with _mock_client() as client:
                loader = HttpLoader(client=client)
                return await loader([
                    "https://example.com/ok.srt",
                    "https://example.com/missing.srt",
                    "https://example.com/boom",
                    "local.srt",
                ])

        result = asyncio.run(run())
        assert list(result) == ["https://example.com/ok.srt"]
        assert result["https://example.com/ok.srt"].startswith("1\n")

    def test_no_urls_makes_no_client(self):
        assert asyncio.run(HttpLoader()(["a.json"])) == {}


class TestChainLoader:

    def test_later_loaders_only_see_missing_names(self, tmp_path):
        (tmp_path / "a.json").write_text("A", encoding="utf-8")
        seen = []

        async def fallback(names):
            seen.append(list(names))
            return {name: "B" for name in names}

        loader = ChainLoader(VaultLoader(tmp_path), fallback)
        result = asyncio.run(loader(["a.json", "b.json"]))
        assert result == {"a.json": "A", "b.json": "B"}
        assert seen == [["b.json"]]
