"""Split the Pacific Surfliner travel advisory page into discrete alerts.

The page is a flat run of ``<h4>`` category headers, each followed by sibling
blocks up to the next ``<h4>``. Inside a category an alert starts at a title
block and collects every following block as its body until the next title.

What counts as a title depends on the category. Strict categories (Service
Updates, Station Notices) only accept blocks carrying the highlight class,
because they use bold text freely inside bodies. Lenient categories also
accept blocks that lead with ``<strong>``. A title whose text mentions
southbound or northbound is a subsection of the current alert, not a new one.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Sequence

from bs4 import BeautifulSoup
from bs4.element import Comment, NavigableString, Tag

from .config import (
    ADVISORY_ID_PREFIX,
    HIGHLIGHT_CLASS,
    STRICT_SECTION_MARKERS,
    SUBSECTION_KEYWORDS,
)
from .models import Advisory

logger = logging.getLogger(__name__)

CATEGORY_TAG = "h4"
EMPHASIS_TAGS = ("strong",)
LIST_TAGS = ("ul", "ol")


class SectionState(Enum):
    SCANNING_TITLE = "scanning_title"
    ACCUMULATING_BODY = "accumulating_body"


class ElementKind(Enum):
    TITLE = "title"
    CONTENT = "content"
    BOUNDARY = "boundary"


class Decision(Enum):
    SKIP = "skip"
    ACCUMULATE = "accumulate"
    MERGE_AS_SUBSECTION = "merge_as_subsection"
    START_NEW_ALERT = "start_new_alert"
    END_SECTION = "end_section"


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def element_text(tag: Tag) -> str:
    return collapse_whitespace(tag.get_text())


def advisory_id(title: str) -> str:
    """Stable id for an advisory, derived from its title only."""
    digest = hashlib.sha256(title.encode("utf-8")).hexdigest()[:16]
    return f"{ADVISORY_ID_PREFIX}{digest}"


def classify_section(header_text: str) -> bool:
    """True when a category header marks a strict section."""
    return any(marker in header_text for marker in STRICT_SECTION_MARKERS)


def starts_with_emphasis(tag: Tag) -> bool:
    """
    Check whether an element's first non-whitespace child is emphasis.

    ``<p><strong>Title</strong> more</p>`` qualifies,
    ``<p>The <strong>bus</strong> ...</p>`` does not.
    """
    for child in tag.children:
        if isinstance(child, Tag):
            return child.name in EMPHASIS_TAGS
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString) and child.strip():
            return False
    return False


def is_highlighted(tag: Tag) -> bool:
    return HIGHLIGHT_CLASS in (tag.get("class") or [])


def classify_element(tag: Tag, strict: bool) -> ElementKind:
    """Classify a sibling block within a category."""
    if tag.name == CATEGORY_TAG:
        return ElementKind.BOUNDARY

    if strict:
        title_shaped = is_highlighted(tag)
    else:
        title_shaped = is_highlighted(tag) or starts_with_emphasis(tag)

    # A title with no text cannot name an alert
    if title_shaped and element_text(tag):
        return ElementKind.TITLE
    return ElementKind.CONTENT


def is_subsection_title(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in SUBSECTION_KEYWORDS)


def merge_decision(state: SectionState, kind: ElementKind, text: str) -> Decision:
    """
    Decide what a classified block does to the section walk.

    Args:
        state: Current walker state.
        kind: Classification of the block.
        text: The block's whitespace-collapsed text.
    """
    if kind is ElementKind.BOUNDARY:
        return Decision.END_SECTION

    if state is SectionState.SCANNING_TITLE:
        if kind is ElementKind.TITLE:
            return Decision.START_NEW_ALERT
        return Decision.SKIP

    if kind is ElementKind.TITLE:
        if is_subsection_title(text):
            return Decision.MERGE_AS_SUBSECTION
        return Decision.START_NEW_ALERT
    return Decision.ACCUMULATE


def render_block(tag: Tag) -> str:
    """Render a body block; list items become one "- item" line each."""
    text = element_text(tag)
    if not text:
        return ""
    if tag.name in LIST_TAGS:
        lines = [f"- {element_text(li)}\n" for li in tag.find_all("li")]
        return "".join(lines)
    return f"{text}\n\n"


@dataclass
class _Draft:
    title: str
    parts: List[str] = field(default_factory=list)

    @property
    def description(self) -> str:
        return "".join(self.parts).strip()


class AdvisoryWalker:
    """Finite-state walk over the sibling blocks of one category header."""

    def __init__(self, header: Tag, route_id: Optional[str] = None):
        self.header = header
        self.route_id = route_id
        self.category = element_text(header)
        self.strict = classify_section(self.category)

    def siblings(self) -> Iterator[Tag]:
        for node in self.header.next_siblings:
            if isinstance(node, Tag):
                yield node

    def walk(self) -> List[Advisory]:
        advisories: List[Advisory] = []
        state = SectionState.SCANNING_TITLE
        draft: Optional[_Draft] = None

        for tag in self.siblings():
            kind = classify_element(tag, self.strict)
            text = element_text(tag)
            decision = merge_decision(state, kind, text)

            if decision is Decision.END_SECTION:
                break
            if decision is Decision.START_NEW_ALERT:
                if draft is not None:
                    advisories.append(self._finish(draft))
                draft = _Draft(title=text)
                state = SectionState.ACCUMULATING_BODY
            elif decision is Decision.MERGE_AS_SUBSECTION:
                draft.parts.append(f"\n### {text}\n\n")
            elif decision is Decision.ACCUMULATE:
                draft.parts.append(render_block(tag))

        if draft is not None:
            advisories.append(self._finish(draft))
        return advisories

    def _finish(self, draft: _Draft) -> Advisory:
        return Advisory(
            id=advisory_id(draft.title),
            title=draft.title,
            description=draft.description,
            category=self.category,
            route_id=self.route_id,
        )


def category_headers(soup: BeautifulSoup) -> Sequence[Tag]:
    return soup.find_all(CATEGORY_TAG)


def parse_advisories(html: str, route_id: Optional[str] = None) -> List[Advisory]:
    """
    Extract every advisory on the page, in document order.

    Args:
        html: The advisory page.
        route_id: Route the advisories inform.

    Returns:
        List of Advisory objects.
    """
    soup = BeautifulSoup(html, "html.parser")
    advisories: List[Advisory] = []
    for header in category_headers(soup):
        walker = AdvisoryWalker(header, route_id)
        found = walker.walk()
        logger.debug(f"Category {walker.category!r} (strict={walker.strict}): {len(found)} advisories")
        advisories.extend(found)
    return advisories
