"""Boilerplate detection for elements and free text."""

from __future__ import annotations

from typing import List, Optional, Sequence

from bs4 import BeautifulSoup, Tag

from .config import TextPolicy, compile_selectors


def ancestor_path(element: Tag) -> List[Tag]:
    """The element followed by each ancestor element up to ``<html>``."""
    path = [element]
    for parent in element.parents:
        if isinstance(parent, BeautifulSoup):
            break
        path.append(parent)
    return path


class BoilerplateFilter:
    """Decides whether an element (and its subtree) is site chrome.

    Two independent checks exclude an element: the element itself is in the
    always-remove set (scripts, form controls, hidden markers), or any member
    of its ancestor path is a boilerplate container (header, footer, nav,
    cookie banners, sidebars).
    """

    def __init__(self, policy: Optional[TextPolicy] = None):
        self.policy = policy or TextPolicy()
        self._always_remove = compile_selectors(self.policy.always_remove_selectors)
        self._containers = compile_selectors(self.policy.boilerplate_selectors)

    def is_always_removed(self, element: Tag) -> bool:
        if isinstance(element, BeautifulSoup):
            return False
        return any(pattern.match(element) for pattern in self._always_remove)

    def is_container(self, element: Tag) -> bool:
        if isinstance(element, BeautifulSoup):
            return False
        return any(pattern.match(element) for pattern in self._containers)

    def is_skippable(self, element: Tag, path: Optional[Sequence[Tag]] = None) -> bool:
        """True when ``element`` must be excluded from extraction.

        ``path`` is the materialized ancestor path (element first); it is
        computed from the tree when not supplied.
        """
        if self.is_always_removed(element):
            return True
        chain = path if path is not None else ancestor_path(element)
        return any(self.is_container(node) for node in chain)

    def is_noise_text(self, text: str) -> bool:
        """Cookie-banner phrases, JSON blobs and tracking markers."""
        trimmed = text.strip()
        lowered = trimmed.lower()
        if any(phrase in lowered for phrase in self.policy.cookie_phrases):
            return True
        if self.policy.json_pattern.match(trimmed):
            return True
        return any(marker in lowered for marker in self.policy.noise_markers)
