"""Content filtering for jokes: profanity matching and sensitive-topic detection."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from better_profanity import Profanity

if TYPE_CHECKING:
    from jokestream.settings import FilterSettings

logger = logging.getLogger(__name__)

# Characters better_profanity treats as part of a word (letters, digits and the
# leetspeak stand-ins it knows about). Apostrophes only join word pieces.
TOKEN_PATTERN = re.compile(r"[\w@$*]+(?:'[\w@$*]+)*")
TOKEN_PIECE_PATTERN = re.compile(r"[^']+")

DEFAULT_CENSOR_CHAR = "*"

DEFAULT_CATEGORY_PATTERNS: tuple[tuple[str, str], ...] = (
    (r"\brac(ist|ism|ial)\b", "racism"),
    (r"\bdiscriminat\w*\b", "discrimination"),
    (r"\b(violence|violent|abuse)\b", "violence"),
    (r"\bhate\s*(speech|crime)?\b", "hate"),
    (r"\b(suicide|self.?harm)\b", "self-harm"),
    (r"\b(terror|extremis[mt])\b", "extremism"),
)


def collapse_repeats(word: str, keep: int = 1) -> str:
    """Shorten every run of a repeated character to at most keep characters.

    collapse_repeats("fuuuuck") == "fuck"; collapse_repeats("asssss", 2) == "ass".
    """
    return re.sub(rf"(.)\1{{{keep},}}", lambda m: m.group(1) * keep, word, flags=re.IGNORECASE)


def spelling_variants(word: str) -> list[str]:
    """The word as written, then with runs cut to two and to one character."""
    return list(dict.fromkeys([word, collapse_repeats(word, 2), collapse_repeats(word, 1)]))


class InvalidPatternError(ValueError):
    """A custom category pattern failed to compile."""

    pass


@dataclass(frozen=True)
class Match:
    """Span of a profanity match in the analyzed text (end exclusive)."""

    start: int
    end: int


@dataclass(frozen=True)
class CategoryRule:
    """A compiled pattern and the category label it reports."""

    pattern: re.Pattern[str]
    category: str


@dataclass
class FilterResult:
    """Outcome of analyzing a piece of text.

    Attributes:
        is_clean: True when neither profanity nor a category rule matched
        matched_categories: Matched profanity substrings followed by category labels
        censored_text: The text with profanity spans censored (the input when clean)
    """

    is_clean: bool
    matched_categories: list[str] = field(default_factory=list)
    censored_text: str | None = None


class TextMatcher:
    """Finds profane words using the better_profanity dictionary.

    The dictionary expands each word into its leetspeak variants, so
    "sh1t" and "f*ck" match the same entries as their plain spellings.
    Stretched spellings ("fuuuuck") are tried with their repeats collapsed,
    and a token joined by apostrophes ("shit's") is also checked piece by
    piece, reporting only the profane piece.
    """

    def __init__(self, extra_words: Iterable[str] | None = None):
        self._profanity = Profanity()
        if extra_words:
            self.add_words(extra_words)

    def add_words(self, words: Iterable[str]) -> None:
        """Add words to the dictionary (e.g. a user's custom blocklist).

        Raises:
            ValueError: If an entry contains whitespace. Matching works on
                single tokens, so a phrase could never match.
        """
        cleaned = [word.strip().lower() for word in words if word and word.strip()]
        phrases = [word for word in cleaned if any(ch.isspace() for ch in word)]
        if phrases:
            raise ValueError(f"Blocklist entries must be single words, got {phrases!r}")
        if cleaned:
            self._profanity.add_censor_words(cleaned)
            logger.debug("Added %d word(s) to profanity dictionary", len(cleaned))

    def is_profane(self, word: str) -> bool:
        return any(self._profanity.contains_profanity(form) for form in spelling_variants(word))

    def find_matches(self, text: str) -> list[Match]:
        """Return the spans of profane words in text order."""
        matches: list[Match] = []
        for token in TOKEN_PATTERN.finditer(text):
            word = token.group()
            if self.is_profane(word):
                matches.append(Match(token.start(), token.end()))
            elif "'" in word:
                matches.extend(
                    Match(token.start() + piece.start(), token.start() + piece.end())
                    for piece in TOKEN_PIECE_PATTERN.finditer(word)
                    if self.is_profane(piece.group())
                )
        return matches


class CategoryDetector:
    """Evaluates an ordered, append-only list of category rules."""

    def __init__(self, patterns: Iterable[tuple[str, str]] = DEFAULT_CATEGORY_PATTERNS):
        self._rules: list[CategoryRule] = []
        for pattern_source, category in patterns:
            self.add_pattern(pattern_source, category)

    @property
    def rules(self) -> list[CategoryRule]:
        return list(self._rules)

    def add_pattern(self, pattern_source: str, category: str) -> CategoryRule:
        """Compile a case-insensitive pattern and append it as a rule.

        Raises:
            InvalidPatternError: If the pattern does not compile. The rule
                set is left unchanged.
        """
        try:
            compiled = re.compile(pattern_source, re.IGNORECASE)
        except re.error as e:
            raise InvalidPatternError(
                f"Invalid pattern for category '{category}': {pattern_source!r} ({e})"
            ) from e

        rule = CategoryRule(pattern=compiled, category=category)
        self._rules.append(rule)
        return rule

    def detect_categories(self, text: str) -> list[str]:
        """Return the label of every rule whose pattern occurs in text, in rule order."""
        return [rule.category for rule in self._rules if rule.pattern.search(text)]


class ContentFilterEngine:
    """Decides whether text is clean, why it is not, and how to censor it.

    Combines a TextMatcher (profanity) with a CategoryDetector (sensitive
    topics). The engine holds no state besides its rule set, which only
    grows through add_custom_pattern().
    """

    def __init__(
        self,
        matcher: TextMatcher | None = None,
        detector: CategoryDetector | None = None,
        censor_char: str = DEFAULT_CENSOR_CHAR,
    ):
        if len(censor_char) != 1:
            raise ValueError(f"censor_char must be a single character, got {censor_char!r}")
        self.matcher = matcher or TextMatcher()
        self.detector = detector or CategoryDetector()
        self.censor_char = censor_char

    @classmethod
    def from_settings(cls, settings: "FilterSettings") -> "ContentFilterEngine":
        """Create an engine whose dictionary includes the settings blocklist."""
        return cls(matcher=TextMatcher(settings.custom_blocklist))

    @property
    def rules(self) -> list[CategoryRule]:
        return self.detector.rules

    def analyze(self, text: str) -> FilterResult:
        """Analyze text for profanity and sensitive categories.

        Args:
            text: The text to analyze

        Returns:
            FilterResult. matched_categories lists the literal profane
            substrings first, then the category labels. Category-only hits
            leave censored_text equal to the input.
        """
        matches = self.matcher.find_matches(text)
        categories = self.detector.detect_categories(text)

        is_clean = not matches and not categories
        if is_clean:
            return FilterResult(is_clean=True, matched_categories=[], censored_text=text)

        return FilterResult(
            is_clean=False,
            matched_categories=[text[m.start : m.end] for m in matches] + categories,
            censored_text=self._censor(text, matches),
        )

    def is_clean(self, text: str) -> bool:
        return self.analyze(text).is_clean

    def clean(self, text: str) -> str:
        """Return text with profanity censored."""
        result = self.analyze(text)
        return result.censored_text or text

    def add_custom_pattern(self, pattern_source: str, category: str) -> None:
        """Append a category rule; raises InvalidPatternError on a bad pattern."""
        self.detector.add_pattern(pattern_source, category)
        logger.info("Added custom filter pattern for category '%s'", category)

    def _censor(self, text: str, matches: list[Match]) -> str:
        if not matches:
            return text

        # Spans come from a single left-to-right scan, so they never overlap
        pieces: list[str] = []
        cursor = 0
        for match in matches:
            pieces.append(text[cursor : match.start])
            pieces.append(self.censor_char * (match.end - match.start))
            cursor = match.end
        pieces.append(text[cursor:])
        return "".join(pieces)
