"""
Site store — atomic JSON persistence for Site records.

Sites are stored in .state/sites.json keyed by domain. Writes are
atomic (write to temp file, then rename) so a crash mid-write never
leaves a truncated store behind.

Unlike disposable state, a corrupt store is an error rather than a
fresh start: silently replacing it would drop every site record.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from pydantic import BaseModel, Field

from vhostctl.core.errors import ProvisionIOError, SiteExistsError, SiteNotFoundError
from vhostctl.core.models.site import Site

logger = logging.getLogger(__name__)

DEFAULT_STORE_FILE = "sites.json"


class SiteDocument(BaseModel):
    """On-disk layout of the store."""

    schema_version: int = 1
    sites: list[Site] = Field(default_factory=list)


class SiteStore:
    """Keyed table of Site records backed by one JSON file."""

    def __init__(self, path: Path | None = None, state_dir: Path | None = None):
        if path is not None:
            self._path = path
        elif state_dir is not None:
            self._path = state_dir / DEFAULT_STORE_FILE
        else:
            self._path = Path(".state") / DEFAULT_STORE_FILE

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Site]:
        if not self._path.is_file():
            return {}
        try:
            raw = self._path.read_text(encoding="utf-8")
            document = SiteDocument.model_validate(json.loads(raw))
        except OSError as e:
            raise ProvisionIOError(f"Cannot read site store {self._path}: {e}") from e
        except ValueError as e:
            raise ProvisionIOError(f"Corrupt site store {self._path}: {e}") from e
        return {site.domain: site for site in document.sites}

    def _save(self, sites: dict[str, Site]) -> None:
        document = SiteDocument(sites=sorted(sites.values(), key=lambda s: s.domain))
        content = json.dumps(document.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"

        self._path.parent.mkdir(parents=True, exist_ok=True)
        _fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, prefix=".sites_", suffix=".tmp")
        tmp = Path(tmp_path)
        try:
            with open(_fd, "w", encoding="utf-8") as f:
                f.write(content)
            tmp.replace(self._path)
            logger.debug("Site store saved to %s (%d sites)", self._path, len(sites))
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise ProvisionIOError(f"Failed to save site store {self._path}: {e}") from e

    def list(self) -> list[Site]:
        return sorted(self._load().values(), key=lambda s: s.domain)

    def get(self, domain: str) -> Site:
        site = self._load().get(domain)
        if site is None:
            raise SiteNotFoundError(f"No site recorded for {domain}")
        return site

    def exists(self, domain: str) -> bool:
        return domain in self._load()

    def add(self, site: Site) -> Site:
        sites = self._load()
        if site.domain in sites:
            raise SiteExistsError(f"A site for {site.domain} already exists")
        sites[site.domain] = site
        self._save(sites)
        logger.info("Recorded site %s", site.domain)
        return site

    def save(self, site: Site) -> Site:
        """Insert or replace a record, refreshing updated_at."""
        sites = self._load()
        site.touch()
        sites[site.domain] = site
        self._save(sites)
        return site

    def delete(self, domain: str) -> Site:
        sites = self._load()
        site = sites.pop(domain, None)
        if site is None:
            raise SiteNotFoundError(f"No site recorded for {domain}")
        self._save(sites)
        logger.info("Deleted site record %s", domain)
        return site
