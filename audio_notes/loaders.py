"""File loaders handed to TranscriptCache by the host.

WHY: The core asks for transcript contents by name through a narrow
``load_files(names) -> {name: contents}`` interface and never touches the
disk or network itself. These are the stock implementations: a vault of
local files, plain HTTP(S) resources, and a chain of both.

HOW: Each loader is an object with an async ``__call__``. VaultLoader
reads UTF-8 files under a root directory. HttpLoader fetches URLs with
httpx.AsyncClient. ChainLoader asks each loader in turn for the names the
previous ones could not supply.

RULES:
- Names a loader cannot supply are left out of the result, never raised
- VaultLoader refuses names that resolve outside its root and, when given
  extensions, names with any other suffix
- Names the OS rejects (too long, no permission, embedded NUL) are logged
  and left out like missing files
- HttpLoader only handles names starting with http:// or https://
- An HttpLoader given its own client does not close it
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import httpx

from audio_notes.config import HTTP_TIMEOUT_S

logger = logging.getLogger(__name__)


class VaultLoader:
    """Read files relative to a document vault directory."""

    def __init__(self, root: Union[str, Path], extensions: Optional[Iterable[str]] = None) -> None:
        self.root = Path(root).resolve()
        self.extensions = {e.lower() for e in extensions} if extensions is not None else None

    def resolve(self, name: str) -> Optional[Path]:
        """Return the file path for ``name``, or None if it is not a file
        inside the vault."""
        if self.extensions is not None and Path(name).suffix.lower() not in self.extensions:
            return None
        try:
            path = (self.root / name).resolve()
            if path != self.root and self.root not in path.parents:
                logger.warning("Refusing to read outside the vault: %s", name)
                return None
            if not path.is_file():
                return None
        except (OSError, ValueError) as e:
            logger.warning("Could not resolve %s: %s", name, e)
            return None
        return path

    async def __call__(self, names: List[str]) -> Dict[str, str]:
        results: Dict[str, str] = {}
        for name in names:
            path = self.resolve(name)
            if path is None:
                continue
            try:
                results[name] = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Could not read %s: %s", path, e)
        return results


class HttpLoader:
    """Fetch transcripts published at plain HTTP(S) URLs."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = HTTP_TIMEOUT_S,
    ) -> None:
        self._client = client
        self._timeout = timeout

    @staticmethod
    def handles(name: str) -> bool:
        return name.startswith(("http://", "https://"))

    async def __call__(self, names: List[str]) -> Dict[str, str]:
        urls = [name for name in names if self.handles(name)]
        if not urls:
            return {}
        if self._client is not None:
            return await self._fetch_all(self._client, urls)
        async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
            return await self._fetch_all(client, urls)

    async def _fetch_all(self, client: httpx.AsyncClient, urls: List[str]) -> Dict[str, str]:
        results: Dict[str, str] = {}
        for url in urls:
            try:
                resp = await client.get(url)
            except httpx.HTTPError as e:
                logger.warning("Could not fetch %s: %s", url, e)
                continue
            if resp.status_code >= 400:
                logger.warning("Could not fetch %s: HTTP %d", url, resp.status_code)
                continue
            results[url] = resp.text
        return results


class ChainLoader:
    """Try several loaders in order, each for the names still missing."""

    def __init__(self, *loaders) -> None:
        self._loaders = loaders

    async def __call__(self, names: List[str]) -> Dict[str, str]:
        results: Dict[str, str] = {}
        for loader in self._loaders:
            missing = [name for name in names if name not in results]
            if not missing:
                break
            results.update(await loader(missing))
        return results
