"""Detection rules and the immutable library that holds them."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, Mapping, Sequence, Tuple

import regex

from ..models import Confidence, SecretCategory
from ..utils.checks import is_placeholder

_CATEGORY_SELECTOR = "category:"


@dataclass(frozen=True, slots=True)
class DetectionRule:
    """A named pattern with the certainty and category of what it finds."""

    name: str
    pattern: regex.Pattern[str]
    confidence: Confidence
    category: SecretCategory
    description: str = ""
    validator: Callable[[str], bool] | None = None

    def accepts(self, value: str) -> bool:
        if not value or is_placeholder(value):
            return False
        if self.validator is not None and not self.validator(value):
            return False
        return True

    def iter_accepted(self, text: str) -> Iterator[regex.Match[str]]:
        """Yield non-overlapping accepted matches.

        A rejected candidate does not consume its text: the search resumes one
        character past its start, so a valid value overlapping it is still found.
        """

        position = 0
        while position <= len(text):
            match = self.pattern.search(text, position)
            if match is None:
                return
            if not self.accepts(match.group()):
                position = match.start() + 1
                continue
            yield match
            position = max(match.end(), match.start() + 1)


def compile_rule(
    name: str,
    pattern: str,
    *,
    confidence: Confidence,
    category: SecretCategory,
    description: str = "",
    flags: regex.RegexFlag | int = 0,
    validator: Callable[[str], bool] | None = None,
) -> DetectionRule:
    return DetectionRule(
        name=name,
        pattern=regex.compile(pattern, flags | regex.UNICODE),
        confidence=confidence,
        category=category,
        description=description,
        validator=validator,
    )


class PatternLibrary:
    """Ordered, read-only table of detection rules.

    Rules are applied in table order. Libraries are never mutated; use
    :meth:`with_rule` or :meth:`select` to derive a new one.
    """

    __slots__ = ("_rules", "_by_name")

    def __init__(self, rules: Iterable[DetectionRule]) -> None:
        ordered: Tuple[DetectionRule, ...] = tuple(rules)
        by_name: Dict[str, DetectionRule] = {}
        for rule in ordered:
            if rule.name in by_name:
                raise ValueError(f"Rule already registered: {rule.name}")
            by_name[rule.name] = rule
        self._rules = ordered
        self._by_name = by_name

    @property
    def rules(self) -> Tuple[DetectionRule, ...]:
        return self._rules

    def __iter__(self) -> Iterator[DetectionRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def get(self, name: str) -> DetectionRule:
        try:
            return self._by_name[name]
        except KeyError as exc:
            raise KeyError(f"Unknown rule: {name}") from exc

    def names(self) -> Mapping[str, DetectionRule]:
        return dict(self._by_name)

    def with_rule(self, rule: DetectionRule, override: bool = False) -> "PatternLibrary":
        if rule.name in self._by_name:
            if not override:
                raise ValueError(f"Rule already registered: {rule.name}")
            return PatternLibrary(rule if existing.name == rule.name else existing for existing in self._rules)
        return PatternLibrary((*self._rules, rule))

    def select(
        self,
        enabled: Sequence[str] | None = None,
        disabled: Sequence[str] | None = None,
    ) -> "PatternLibrary":
        """Return the subset matching ``enabled`` minus ``disabled``.

        Selectors are exact rule names or ``category:<name>``.
        """

        if not enabled and not disabled:
            return self
        chosen = [
            rule
            for rule in self._rules
            if (not enabled or any(_matches_selector(rule, selector) for selector in enabled))
            and not any(_matches_selector(rule, selector) for selector in disabled or ())
        ]
        return PatternLibrary(chosen)


def _matches_selector(rule: DetectionRule, selector: str) -> bool:
    if selector.startswith(_CATEGORY_SELECTOR):
        return rule.category.value == selector[len(_CATEGORY_SELECTOR):]
    return rule.name == selector


__all__ = ["DetectionRule", "PatternLibrary", "compile_rule"]
