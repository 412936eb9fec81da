"""Maps activity references to the content view that should render them.

References are first parsed into a tagged :class:`ParsedReference` using the
injected :class:`~learnio.catalogue.ActivityCatalogue`, then a matcher keyed
by reference kind turns that into a :class:`ViewSelector`. Routing never
raises: anything unrecognized lands on the dashboard for the active profile.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field

from .catalogue import ActivityCatalogue, ActivityEntry
from .i18n import FALLBACK_LANGUAGE, Language, normalize_language
from .profiles import DEFAULT_STUDENT_GRADE, VALID_GRADES, UserProfile

logger = logging.getLogger(__name__)

ReferenceKind = Literal["named", "unit", "subtopic", "game", "mission", "unknown"]

DASHBOARD_VIEW = "dashboard"
ONBOARDING_VIEW = "onboarding"
DEFAULT_DASHBOARD_GRADE = DEFAULT_STUDENT_GRADE


@dataclass(frozen=True)
class ParsedReference:
    kind: ReferenceKind
    id: str
    source: Optional[str] = None


class ViewSelector(BaseModel):
    """Which renderer to invoke and what it receives."""

    model_config = ConfigDict(frozen=True)

    view: str
    language: Language
    reference: Optional[str] = None
    params: Dict[str, str] = Field(default_factory=dict)
    # None means "back to the dashboard"
    back: Optional[str] = None


def parse_reference(reference: Optional[str], catalogue: ActivityCatalogue) -> ParsedReference:
    if not reference:
        return ParsedReference(kind="unknown", id="")

    if reference in catalogue.named:
        return ParsedReference(kind="named", id=reference)

    for rule in catalogue.prefixes:
        if not reference.startswith(rule.prefix):
            continue
        suffix = reference[len(rule.prefix) :]
        if suffix in rule.entries or (suffix and rule.fallback is not None):
            return ParsedReference(kind=rule.kind, id=suffix, source=rule.prefix)
        # a known prefix owns the reference even when the suffix is not recognized
        return ParsedReference(kind="unknown", id=reference, source=rule.prefix)

    for membership in catalogue.catalogues:
        if reference in membership.members:
            return ParsedReference(kind="game", id=reference, source=membership.name)

    missions = catalogue.missions
    if missions.separator in reference or reference in missions.allow_list or reference in missions.upcoming:
        return ParsedReference(kind="mission", id=reference)

    return ParsedReference(kind="unknown", id=reference)


def dashboard_selector(language: Language, profile: Optional[UserProfile] = None) -> ViewSelector:
    if profile is not None and profile.role == "teacher":
        variant = "admin"
    else:
        grade = profile.grade if profile is not None else None
        variant = f"grade-{grade if grade in VALID_GRADES else DEFAULT_DASHBOARD_GRADE}"
    return ViewSelector(view=DASHBOARD_VIEW, language=language, params={"variant": variant})


class ActivityRouter:
    """Pure routing over an injected activity catalogue."""

    def __init__(self, catalogue: ActivityCatalogue) -> None:
        self._catalogue = catalogue
        self._prefix_rules = {rule.prefix: rule for rule in catalogue.prefixes}
        self._memberships = {membership.name: membership for membership in catalogue.catalogues}
        self._matchers: Dict[str, Callable[[ParsedReference, str, Language], Optional[ViewSelector]]] = {
            "named": self._match_named,
            "unit": self._match_prefixed,
            "subtopic": self._match_prefixed,
            "game": self._match_game,
            "mission": self._match_mission,
            "unknown": self._match_unknown,
        }
        missing = set(get_args(ReferenceKind)) - set(self._matchers)
        if missing:
            raise RuntimeError(f"No matcher for reference kinds: {sorted(missing)}")

    @property
    def catalogue(self) -> ActivityCatalogue:
        return self._catalogue

    def parse(self, reference: Optional[str]) -> ParsedReference:
        return parse_reference(reference, self._catalogue)

    def route(
        self,
        reference: Optional[str],
        language: str,
        profile: Optional[UserProfile] = None,
    ) -> ViewSelector:
        lang = normalize_language(language) or FALLBACK_LANGUAGE
        parsed = self.parse(reference)
        selector = self._matchers[parsed.kind](parsed, reference or "", lang)
        if selector is None:
            return dashboard_selector(lang, profile)
        return selector

    def _from_entry(self, entry: ActivityEntry, reference: str, language: Language) -> ViewSelector:
        return ViewSelector(
            view=entry.view,
            language=language,
            reference=reference,
            params=dict(entry.params),
            back=entry.back,
        )

    def _match_named(self, parsed: ParsedReference, reference: str, language: Language) -> Optional[ViewSelector]:
        return self._from_entry(self._catalogue.named[parsed.id], reference, language)

    def _match_prefixed(self, parsed: ParsedReference, reference: str, language: Language) -> Optional[ViewSelector]:
        rule = self._prefix_rules[parsed.source or ""]
        entry = rule.entries.get(parsed.id)
        if entry is not None:
            return self._from_entry(entry, reference, language)
        if rule.fallback is None:
            return None
        selector = self._from_entry(rule.fallback, reference, language)
        return selector.model_copy(update={"params": {**selector.params, parsed.kind: parsed.id}})

    def _match_game(self, parsed: ParsedReference, reference: str, language: Language) -> Optional[ViewSelector]:
        membership = self._memberships[parsed.source or ""]
        return ViewSelector(
            view=membership.view,
            language=language,
            reference=reference,
            params={"game": parsed.id, "catalogue": membership.name},
        )

    def _match_mission(self, parsed: ParsedReference, reference: str, language: Language) -> Optional[ViewSelector]:
        missions = self._catalogue.missions
        params: Dict[str, str] = {"mission": parsed.id}
        game = missions.games.get(parsed.id)
        if game is None:
            title = missions.upcoming.get(parsed.id)
            if title is None and parsed.id not in missions.allow_list:
                logger.debug("No mission named %r; showing dashboard", parsed.id)
                return None
            game = missions.placeholder
            if title is not None:
                params["title"] = title
        params["game"] = game
        return ViewSelector(view="mission", language=language, reference=reference, params=params)

    def _match_unknown(self, parsed: ParsedReference, reference: str, language: Language) -> Optional[ViewSelector]:
        if reference:
            logger.debug("Unroutable activity reference %r; showing dashboard", reference)
        return None


__all__ = [
    "ActivityRouter",
    "DASHBOARD_VIEW",
    "ONBOARDING_VIEW",
    "ParsedReference",
    "ReferenceKind",
    "ViewSelector",
    "dashboard_selector",
    "parse_reference",
]
