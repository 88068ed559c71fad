# app/services/markers.py
"""
Inline marker parsing and global finding numbering.

Copy-edit and claim-flag replies look like:

    The text with [[ISSUE: teh]] marked spans.

    ---ISSUES---
    1. "teh" -> "the" (spelling)

Each chunk is numbered independently by the model, so numbers are
re-threaded here: FindingNumberer.number_chunk takes the next free number
and returns it advanced, and the caller carries it across chunks. Final
markers carry their number inline as ``[[ISSUE #3: teh]]``.

Fact-check replies use four verdict markers instead; parse_verdicts reads
them in document order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from app.constants import MarkerTags

_QUOTE = "[\"“”]"
_ARROW = r"(?:->|→)"
_DASH = "[—–:-]"

# Tried in order against each numbered list item
_STRICT = re.compile(rf"^{_QUOTE}(.+?){_QUOTE}\s*{_ARROW}\s*{_QUOTE}(.+?){_QUOTE}\s*\((.+)\)\s*$", re.S)
_ARROW_DASH = re.compile(
    rf"^{_QUOTE}(.+?){_QUOTE}\s*(?:{_ARROW}|:)\s*{_QUOTE}(.+?){_QUOTE}\s*{_DASH}\s*(.+)$", re.S
)
_QUOTE_DASH = re.compile(rf"^{_QUOTE}(.+?){_QUOTE}\s*{_DASH}\s*(.+)$", re.S)

_ITEM_START = re.compile(r"^\s*(\d+)[.)]\s*(.*)$")
_VERDICT = re.compile(
    rf"\[\[({MarkerTags.VERIFIED}|{MarkerTags.QUESTIONABLE}|{MarkerTags.INCORRECT}|{MarkerTags.CHECK_CURRENT}):\s*(.+?)\]\]",
    re.S,
)
_ANY_MARKER = re.compile(r"\[\[.+?\]\]", re.S)


def normalize_marker_text(text: str) -> str:
    """Case- and whitespace-insensitive key for marker text."""
    return re.sub(r"\s+", " ", text).strip().lower()


@dataclass(frozen=True)
class MarkerSpec:
    """Tag and list header for one markup task."""

    tag: str
    header: str

    @property
    def pattern(self) -> re.Pattern:
        return re.compile(rf"\[\[{self.tag}(?:\s*#\d+)?:\s*(.+?)\]\]", re.S)

    def render(self, number: int, text: str) -> str:
        return f"[[{self.tag} #{number}: {text}]]"

    def split_reply(self, reply: str) -> tuple[str, str]:
        parts = re.split(re.escape(self.header), reply, maxsplit=1, flags=re.I)
        body = parts[0].strip()
        listing = parts[1] if len(parts) > 1 else ""
        return body, listing


ISSUE_MARKERS = MarkerSpec(tag=MarkerTags.ISSUE, header=MarkerTags.ISSUES_HEADER)
CLAIM_MARKERS = MarkerSpec(tag=MarkerTags.CLAIM, header=MarkerTags.CLAIMS_HEADER)


@dataclass(frozen=True)
class Finding:
    number: int
    original_text: Optional[str]
    replacement_text: Optional[str]
    rationale: str

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "original": self.original_text,
            "replacement": self.replacement_text,
            "rationale": self.rationale,
        }


@dataclass(frozen=True)
class ListedFinding:
    """One entry of the model's findings list, before numbering."""

    original_text: Optional[str]
    replacement_text: Optional[str]
    rationale: str


@dataclass(frozen=True)
class NumberedChunk:
    text: str
    findings: tuple[Finding, ...]


def _split_items(listing: str) -> list[str]:
    items: list[list[str]] = []
    for line in listing.splitlines():
        match = _ITEM_START.match(line)
        if match:
            items.append([match.group(2)])
        elif items and line.strip():
            items[-1].append(line.strip())
    return [" ".join(parts).strip() for parts in items if any(p.strip() for p in parts)]


def parse_findings_list(listing: str) -> list[ListedFinding]:
    """
    Parse a numbered findings list, one item at a time.

    Accepted forms, most specific first:
        "orig" -> "fix" (reason)
        "orig" -> "fix" - reason
        "orig" - reason
        anything else (kept as rationale only)
    """
    findings = []
    for item in _split_items(listing):
        match = _STRICT.match(item) or _ARROW_DASH.match(item)
        if match:
            findings.append(
                ListedFinding(
                    original_text=match.group(1).strip(),
                    replacement_text=match.group(2).strip(),
                    rationale=match.group(3).strip(),
                )
            )
            continue
        match = _QUOTE_DASH.match(item)
        if match:
            findings.append(
                ListedFinding(
                    original_text=match.group(1).strip(),
                    replacement_text=None,
                    rationale=match.group(2).strip(),
                )
            )
            continue
        findings.append(ListedFinding(original_text=None, replacement_text=None, rationale=item))
    return findings


def _inside_marker(spans: list[tuple[int, int]], start: int, end: int) -> bool:
    return any(s <= start < e or s < end <= e for s, e in spans)


def _find_unmarked(text: str, needle: str) -> Optional[tuple[int, int]]:
    """Span of the first occurrence of needle outside any marker; whitespace runs match loosely."""
    words = needle.split()
    if not words:
        return None
    pattern = r"\s+".join(re.escape(w) for w in words)
    spans = [m.span() for m in _ANY_MARKER.finditer(text)]
    for flags in (0, re.I):
        for match in re.finditer(pattern, text, flags):
            if not _inside_marker(spans, match.start(), match.end()):
                return match.span()
    return None


class FindingNumberer:
    """
    Assigns document-wide finding numbers one chunk at a time.

    number_chunk is pure: it returns the numbered chunk and the next free
    number, and the caller threads that number into the next chunk. Numbers
    ascend in document order, including markers wrapped around listed
    findings the model left unmarked.

    Usage:
        numberer = FindingNumberer(ISSUE_MARKERS)
        next_number = 1
        for reply in replies:
            chunk, next_number = numberer.number_chunk(reply, next_number)
    """

    def __init__(self, spec: MarkerSpec):
        self.spec = spec

    def _marker_keys(self, body: str) -> list[str]:
        keys: list[str] = []
        for match in self.spec.pattern.finditer(body):
            key = normalize_marker_text(match.group(1))
            if key not in keys:
                keys.append(key)
        return keys

    @staticmethod
    def _pair(keys: list[str], listed: list[ListedFinding]) -> tuple[dict[str, ListedFinding], list[ListedFinding]]:
        """Pair marker keys with list entries by normalized text, then by position."""
        entries: dict[str, ListedFinding] = {}
        unused = list(listed)
        for key in keys:
            match = next(
                (f for f in unused if f.original_text and normalize_marker_text(f.original_text) == key),
                None,
            )
            if match is not None:
                entries[key] = match
                unused.remove(match)
        for key in keys:
            if key not in entries and unused:
                entries[key] = unused.pop(0)
        return entries, unused

    def number_chunk(self, output: str, next_number: int) -> tuple[NumberedChunk, int]:
        body, listing = self.spec.split_reply(output)
        entries, unused = self._pair(self._marker_keys(body), parse_findings_list(listing))

        # Listed but unmarked: mark the first occurrence, or drop it
        for entry in unused:
            if not entry.original_text:
                continue
            span = _find_unmarked(body, entry.original_text)
            if span is None:
                continue
            start, end = span
            original = body[start:end]
            body = f"{body[:start]}[[{self.spec.tag}: {original}]]{body[end:]}"
            entries.setdefault(normalize_marker_text(original), entry)

        # One document-order pass; repeats share a number
        numbers: dict[str, int] = {}
        findings = []
        for match in self.spec.pattern.finditer(body):
            key = normalize_marker_text(match.group(1))
            if key in numbers:
                continue
            numbers[key] = next_number
            entry = entries.get(key)
            findings.append(
                Finding(
                    number=next_number,
                    original_text=match.group(1).strip(),
                    replacement_text=entry.replacement_text if entry else None,
                    rationale=(entry.rationale if entry else "") or MarkerTags.MISSING_RATIONALE,
                )
            )
            next_number += 1

        text = self.spec.pattern.sub(
            lambda m: self.spec.render(numbers[normalize_marker_text(m.group(1))], m.group(1).strip()),
            body,
        )
        return NumberedChunk(text=text, findings=tuple(findings)), next_number


def parse_verdicts(text: str) -> list[dict]:
    """Read fact-check verdict markers in document order."""
    verdicts = []
    for match in _VERDICT.finditer(text):
        claim, _, detail = match.group(2).partition("|")
        verdicts.append(
            {
                "status": match.group(1).lower(),
                "claim": " ".join(claim.split()),
                "detail": " ".join(detail.split()) or None,
            }
        )
    return verdicts
