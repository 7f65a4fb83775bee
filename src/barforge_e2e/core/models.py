"""Shared data structures produced and consumed by the crawler."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Literal, Tuple, Union

NO_RESPONSE = "no-response"

RouteStatus = Union[int, Literal["no-response"]]


@dataclass
class PageMetrics:
    """Counts of interactive and structural elements on a page."""

    buttons: int = 0
    inputs: int = 0
    links: int = 0
    images: int = 0
    headings: int = 0

    def add(self, other: "PageMetrics") -> None:
        self.buttons += other.buttons
        self.inputs += other.inputs
        self.links += other.links
        self.images += other.images
        self.headings += other.headings

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class RouteResult:
    """Outcome of probing a single route."""

    route: str
    status: RouteStatus = NO_RESPONSE
    errors: List[str] = field(default_factory=list)
    console_errors: List[str] = field(default_factory=list)
    internal_links: List[str] = field(default_factory=list)
    external_links: List[str] = field(default_factory=list)
    metrics: PageMetrics = field(default_factory=PageMetrics)

    @property
    def is_failure(self) -> bool:
        if self.status == NO_RESPONSE:
            return True
        if isinstance(self.status, int) and self.status >= 400:
            return True
        return bool(self.errors or self.console_errors)

    def to_failure(self) -> "FailureRecord":
        return FailureRecord(
            route=self.route,
            status=self.status,
            errors=tuple(self.errors),
            console_errors=tuple(self.console_errors),
        )


@dataclass(frozen=True)
class FailureRecord:
    """A route whose probe result is unacceptable."""

    route: str
    status: RouteStatus
    errors: Tuple[str, ...] = ()
    console_errors: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "route": self.route,
            "status": self.status,
            "errors": list(self.errors),
            "console_errors": list(self.console_errors),
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "FailureRecord":
        return cls(
            route=raw["route"],
            status=raw.get("status", NO_RESPONSE),
            errors=tuple(raw.get("errors", [])),
            console_errors=tuple(raw.get("console_errors", [])),
        )
