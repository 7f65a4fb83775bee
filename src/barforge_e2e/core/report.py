"""Crawl verdict and the plain-text attachments rendered from it."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from .models import FailureRecord, PageMetrics


@dataclass
class CrawlReport:
    """Aggregated result of one crawl run."""

    base_url: str = ""
    browser: str = "chromium"
    visited: int = 0
    discovered: int = 0
    categories: Dict[str, int] = field(default_factory=dict)
    metrics: PageMetrics = field(default_factory=PageMetrics)
    failures: List[FailureRecord] = field(default_factory=list)
    external_links: Dict[str, List[str]] = field(default_factory=dict)
    timed_out: bool = False
    duration: float = 0.0

    @property
    def passed(self) -> bool:
        return not self.failures and not self.timed_out

    # ------------------------------------------------------------------
    # Text attachments
    # ------------------------------------------------------------------
    def summary_lines(self) -> List[str]:
        lines = [
            f"Visited: {self.visited}",
            f"Discovered: {self.discovered}",
            f"Failures: {len(self.failures)}",
        ]
        if self.timed_out:
            lines.append("Timed out: yes")
        return lines

    def category_breakdown(self) -> str:
        return ", ".join(f"{category}:{count}" for category, count in self.categories.items())

    def metrics_line(self) -> str:
        m = self.metrics
        return (
            f"Elements: {m.buttons} buttons, {m.inputs} inputs, {m.links} links, "
            f"{m.images} images, {m.headings} headings"
        )

    def summary_text(self) -> str:
        return "\n".join(
            [
                f"Routes visited: {self.visited}",
                f"Routes discovered: {self.discovered}",
                f"Categories: {self.category_breakdown()}",
                self.metrics_line(),
                f"Failures: {len(self.failures)}",
            ]
        )

    def external_links_text(self) -> str:
        return "\n".join(
            f"- {route}: {', '.join(links)}" for route, links in self.external_links.items()
        )

    def failures_text(self) -> str:
        blocks = []
        for failure in self.failures:
            lines = [f"- {failure.route} (status: {failure.status})"]
            lines.extend(f"  {error}" for error in failure.errors)
            lines.extend(f"  {error}" for error in failure.console_errors)
            blocks.append("\n".join(lines))
        return "\n".join(self.summary_lines()) + "\n" + "\n".join(blocks)

    def attachments(self) -> Dict[str, str]:
        """Named attachment bodies; optional ones only when they have content."""

        bodies = {"crawl-summary": self.summary_text()}
        if self.external_links:
            bodies["external-links"] = self.external_links_text()
        if self.failures:
            bodies["crawl-failures"] = self.failures_text()
        return bodies

    def write_attachments(self, directory: Path) -> List[Path]:
        directory.mkdir(parents=True, exist_ok=True)
        written: List[Path] = []
        for name, body in self.attachments().items():
            path = directory / f"{name}.txt"
            path.write_text(body + "\n", encoding="utf-8")
            written.append(path)
        return written

    # ------------------------------------------------------------------
    # JSON
    # ------------------------------------------------------------------
    def to_json(self) -> str:
        data = {
            "base_url": self.base_url,
            "browser": self.browser,
            "visited": self.visited,
            "discovered": self.discovered,
            "categories": self.categories,
            "metrics": self.metrics.to_dict(),
            "failures": [failure.to_dict() for failure in self.failures],
            "external_links": self.external_links,
            "timed_out": self.timed_out,
            "duration": round(self.duration, 3),
            "passed": self.passed,
        }
        return json.dumps(data, indent=4)

    def save(self, path: Path) -> None:
        path.write_text(self.to_json(), encoding="utf-8")

    @classmethod
    def load(cls, path: Path) -> "CrawlReport":
        raw = json.loads(path.read_text(encoding="utf-8"))
        return cls(
            base_url=raw.get("base_url", ""),
            browser=raw.get("browser", "chromium"),
            visited=raw.get("visited", 0),
            discovered=raw.get("discovered", 0),
            categories=dict(raw.get("categories", {})),
            metrics=PageMetrics(**raw.get("metrics", {})),
            failures=[FailureRecord.from_dict(item) for item in raw.get("failures", [])],
            external_links={key: list(value) for key, value in raw.get("external_links", {}).items()},
            timed_out=raw.get("timed_out", False),
            duration=raw.get("duration", 0.0),
        )
