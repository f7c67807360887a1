from __future__ import annotations

from typing import Mapping, Optional, Protocol

from .model import Site


class SiteRepository(Protocol):
    def get_by_id(self, site_id: int) -> Optional[Site]:
        raise NotImplementedError

    def get_names(self) -> Mapping[int, str]:
        """site_id -> display name, used by site-level reports."""

        raise NotImplementedError
