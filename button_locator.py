"""
Heuristics for locating the hosted page's record, pause and stop controls.

The page's markup is not ours, so controls are found through an ordered list
of attribute selectors per control kind, falling back to a keyword scan of
every button's text, ``aria-label`` and ``title``.  The tables are plain
data: they are rendered to CSS for the injected page script and evaluated
here against :class:`PageElement` trees, which keeps the heuristic testable
without a browser.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence

logger = logging.getLogger("voicenotes_core.button_locator")

LOCATOR_CONFIG_PLACEHOLDER = "__VOICENOTES_LOCATOR_CONFIG__"

# Elements whose ``disabled`` attribute makes the DOM ``disabled`` property true
_DISABLEABLE_TAGS = {"button", "input", "select", "textarea", "fieldset", "optgroup", "option"}

_OPERATORS = ("=", "*=", "~=")


@dataclass(frozen=True)
class PageElement:
    """Minimal view of a DOM element: tag, attributes and text content."""

    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    text: str = ""

    @property
    def disabled(self) -> bool:
        return self.tag.lower() in _DISABLEABLE_TAGS and "disabled" in self.attributes


@dataclass(frozen=True)
class SelectorRule:
    """One attribute selector, e.g. ``button[class*="record" i]``.

    ``operator`` is ``=`` (exact), ``*=`` (substring) or ``~=`` (whitespace
    separated token, as used by ``.class`` selectors).
    """

    attribute: str
    value: str
    operator: str = "="
    tag: Optional[str] = None
    case_insensitive: bool = False

    def __post_init__(self):
        if self.operator not in _OPERATORS:
            raise ValueError(f"Unsupported selector operator: {self.operator!r}")

    def to_css(self) -> str:
        flag = " i" if self.case_insensitive else ""
        value = self.value.replace("\\", "\\\\").replace('"', '\\"')
        return f'{self.tag or ""}[{self.attribute}{self.operator}"{value}"{flag}]'

    def matches(self, element: PageElement) -> bool:
        if self.tag and element.tag.lower() != self.tag.lower():
            return False
        actual = element.attributes.get(self.attribute)
        if actual is None:
            return False
        expected = self.value
        if self.case_insensitive:
            actual, expected = actual.lower(), expected.lower()
        if self.operator == "*=":
            return expected in actual
        if self.operator == "~=":
            return expected in actual.split()
        return actual == expected


def data_testid(value: str) -> SelectorRule:
    return SelectorRule("data-testid", value)


def attr_contains(attribute: str, value: str, tag: Optional[str] = None) -> SelectorRule:
    return SelectorRule(attribute, value, "*=", tag, case_insensitive=True)


def css_class(value: str) -> SelectorRule:
    return SelectorRule("class", value, "~=")


def element_id(value: str) -> SelectorRule:
    return SelectorRule("id", value)


DEFAULT_SELECTORS: Dict[str, Sequence[SelectorRule]] = {
    "record": (
        data_testid("record-button"),
        data_testid("recording-button"),
        attr_contains("aria-label", "record"),
        attr_contains("aria-label", "start recording"),
        attr_contains("title", "record"),
        css_class("record-button"),
        element_id("record-button"),
        attr_contains("class", "record", tag="button"),
        attr_contains("id", "record", tag="button"),
    ),
    "pause": (
        data_testid("pause-button"),
        attr_contains("aria-label", "pause"),
        attr_contains("title", "pause"),
        css_class("pause-button"),
        element_id("pause-button"),
        attr_contains("class", "pause", tag="button"),
        attr_contains("id", "pause", tag="button"),
    ),
    "stop": (
        data_testid("stop-button"),
        attr_contains("aria-label", "stop"),
        attr_contains("title", "stop"),
        css_class("stop-button"),
        element_id("stop-button"),
        attr_contains("class", "stop", tag="button"),
        attr_contains("id", "stop", tag="button"),
    ),
}

DEFAULT_KEYWORDS: Dict[str, Sequence[str]] = {
    "record": ("record", "mic", "start"),
    "pause": ("pause",),
    "stop": ("stop", "end", "finish"),
}

# Functions exposed by the page script on ``window.voiceNotesWrapper``
PAGE_FUNCTIONS = (
    "startRecording",
    "pauseRecording",
    "stopRecording",
    "findAndClickRecordButton",
)


class ButtonLocator:
    """Finds a control of a given kind using injectable selector and keyword tables."""

    def __init__(self,
                 selectors: Optional[Mapping[str, Sequence[SelectorRule]]] = None,
                 keywords: Optional[Mapping[str, Sequence[str]]] = None):
        self.selectors: Dict[str, Sequence[SelectorRule]] = dict(
            DEFAULT_SELECTORS if selectors is None else selectors
        )
        self.keywords: Dict[str, Sequence[str]] = {
            kind: tuple(term.lower() for term in terms)
            for kind, terms in (DEFAULT_KEYWORDS if keywords is None else keywords).items()
        }

    def find_button_by_type(self, kind: str,
                            elements: Sequence[PageElement]) -> Optional[PageElement]:
        """Return the first enabled control of *kind* in *elements* (document order).

        Each selector only considers its first match, mirroring
        ``document.querySelector``; a disabled first match moves on to the
        next selector.
        """
        for rule in self.selectors.get(kind, ()):
            match = next((element for element in elements if rule.matches(element)), None)
            if match is not None and not match.disabled:
                logger.debug(f"Found {kind} button with selector: {rule.to_css()}")
                return match

        terms = self.keywords.get(kind, ())
        for element in elements:
            if element.tag.lower() != "button" or element.disabled:
                continue
            haystacks = (
                element.text.lower(),
                element.attributes.get("aria-label", "").lower(),
                element.attributes.get("title", "").lower(),
            )
            if any(term in haystack for term in terms for haystack in haystacks):
                logger.debug(f"Found potential {kind} button by text content")
                return element

        logger.debug(f"No {kind} button found")
        return None

    def page_config(self) -> Dict[str, Any]:
        """The tables in the shape the page script expects."""
        return {
            "selectors": {
                kind: [rule.to_css() for rule in rules]
                for kind, rules in self.selectors.items()
            },
            "keywords": {kind: list(terms) for kind, terms in self.keywords.items()},
        }

    def render_page_script(self, template: str) -> str:
        """Substitute the locator tables into the page script source."""
        if LOCATOR_CONFIG_PLACEHOLDER not in template:
            raise ValueError("Page script template has no locator config placeholder")
        return template.replace(LOCATOR_CONFIG_PLACEHOLDER, json.dumps(self.page_config()))


def render_invocation(function_name: str) -> str:
    """JavaScript that calls a page-exposed control function and returns its result.

    Evaluates to ``{success: false, error}`` when the page script is not
    (yet) installed on the current page.
    """
    if function_name not in PAGE_FUNCTIONS:
        raise ValueError(f"Unknown page function: {function_name}")
    return (
        "(function () {\n"
        "  var wrapper = window.voiceNotesWrapper;\n"
        f"  if (wrapper && typeof wrapper.{function_name} === 'function') {{\n"
        f"    return wrapper.{function_name}();\n"
        "  }\n"
        "  return { success: false, error: 'Page script not loaded' };\n"
        "})();"
    )
