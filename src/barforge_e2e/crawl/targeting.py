from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse


@dataclass(slots=True, frozen=True)
class SiteOrigin:
    """Decides whether a resolved page location still belongs to the site.

    The site is the base URL's scheme and host plus any path prefix it is
    mounted under, e.g. ``http://host:8080/barforge``.
    """

    scheme: str
    host: str
    prefix: str = ""

    @classmethod
    def from_url(cls, base_url: str) -> "SiteOrigin":
        parsed = urlparse(base_url)
        return cls(
            scheme=parsed.scheme.lower(),
            host=parsed.netloc.lower(),
            prefix=parsed.path.rstrip("/"),
        )

    def contains(self, url: str) -> bool:
        try:
            parsed = urlparse(url)
        except ValueError:
            return False

        if parsed.scheme.lower() != self.scheme:
            return False
        if parsed.netloc.lower() != self.host:
            return False
        if not self.prefix:
            return True
        return parsed.path == self.prefix or parsed.path.startswith(self.prefix + "/")

    def resolve(self, route: str) -> str:
        return f"{self.scheme}://{self.host}{self.prefix}{route}"
