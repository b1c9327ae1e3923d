"""Reaction and hide-reason vocabularies, and normalisation of user input."""

from __future__ import annotations

import re
from enum import StrEnum

from ghfeedback.errors import InvalidInputError


class Reaction(StrEnum):
    """Reactions GitHub allows on comments and reviews (REST spelling)."""

    THUMBS_UP = "+1"
    THUMBS_DOWN = "-1"
    LAUGH = "laugh"
    CONFUSED = "confused"
    HEART = "heart"
    HOORAY = "hooray"
    ROCKET = "rocket"
    EYES = "eyes"

    @property
    def graphql(self) -> str:
        """The ``ReactionContent`` enum value used by the GraphQL API."""
        return self.name

    @classmethod
    def from_graphql(cls, content: str) -> Reaction | None:
        """Map a GraphQL ``ReactionContent`` value back to a reaction, or None if unknown."""
        return cls.__members__.get(content)


class Classifier(StrEnum):
    """Reasons accepted by ``minimizeComment``."""

    SPAM = "SPAM"
    ABUSE = "ABUSE"
    OFF_TOPIC = "OFF_TOPIC"
    OUTDATED = "OUTDATED"
    DUPLICATE = "DUPLICATE"
    RESOLVED = "RESOLVED"


# Reactions that mark an item as finished (agreed, disagreed, acknowledged).
FINAL_REACTIONS: frozenset[Reaction] = frozenset({Reaction.THUMBS_UP, Reaction.THUMBS_DOWN, Reaction.ROCKET})

REACTION_ALIASES: dict[str, Reaction] = {
    "+1": Reaction.THUMBS_UP,
    ":+1:": Reaction.THUMBS_UP,
    "thumbs_up": Reaction.THUMBS_UP,
    "thumbsup": Reaction.THUMBS_UP,
    "thumbs-up": Reaction.THUMBS_UP,
    "like": Reaction.THUMBS_UP,
    "\U0001f44d": Reaction.THUMBS_UP,
    "-1": Reaction.THUMBS_DOWN,
    ":-1:": Reaction.THUMBS_DOWN,
    "thumbs_down": Reaction.THUMBS_DOWN,
    "thumbsdown": Reaction.THUMBS_DOWN,
    "thumbs-down": Reaction.THUMBS_DOWN,
    "dislike": Reaction.THUMBS_DOWN,
    "\U0001f44e": Reaction.THUMBS_DOWN,
    "laugh": Reaction.LAUGH,
    "lol": Reaction.LAUGH,
    "\U0001f600": Reaction.LAUGH,
    "\U0001f604": Reaction.LAUGH,
    "\U0001f602": Reaction.LAUGH,
    "\U0001f923": Reaction.LAUGH,
    "confused": Reaction.CONFUSED,
    "\U0001f615": Reaction.CONFUSED,
    "\U0001f914": Reaction.CONFUSED,
    "heart": Reaction.HEART,
    "love": Reaction.HEART,
    "❤️": Reaction.HEART,
    "❤": Reaction.HEART,
    "hooray": Reaction.HOORAY,
    "celebrate": Reaction.HOORAY,
    "\U0001f389": Reaction.HOORAY,
    "rocket": Reaction.ROCKET,
    "ship_it": Reaction.ROCKET,
    "shipit": Reaction.ROCKET,
    "\U0001f680": Reaction.ROCKET,
    "eyes": Reaction.EYES,
    "\U0001f440": Reaction.EYES,
}

CLASSIFIER_ALIASES: dict[str, Classifier] = {
    "off-topic": Classifier.OFF_TOPIC,
    "offtopic": Classifier.OFF_TOPIC,
}

_NON_ENUM_CHARS_RE = re.compile(r"[^A-Z_]")


def normalize_reaction(text: str) -> Reaction:
    """Map free-form input (emoji, word, shortcode, GraphQL enum) to a :class:`Reaction`.

    Raises:
        InvalidInputError: If the input names no known reaction.
    """
    trimmed = text.strip()
    alias = REACTION_ALIASES.get(trimmed.lower())
    if alias is not None:
        return alias
    from_enum = Reaction.from_graphql(trimmed.upper())
    if from_enum is not None:
        return from_enum
    allowed = ", ".join(r.value for r in Reaction)
    msg = f'Unsupported reaction "{text}". Use one of: {allowed}.'
    raise InvalidInputError(msg)


def normalize_classifier(text: str | None = None) -> Classifier:
    """Map a hide reason to a :class:`Classifier`, defaulting to ``RESOLVED``.

    Raises:
        InvalidInputError: If the input names no known reason.
    """
    if not text or not text.strip():
        return Classifier.RESOLVED
    trimmed = text.strip()
    upper = _NON_ENUM_CHARS_RE.sub("_", trimmed.upper())
    if upper in Classifier.__members__:
        return Classifier[upper]
    alias = CLASSIFIER_ALIASES.get(trimmed.lower())
    if alias is not None:
        return alias
    allowed = ", ".join(c.value for c in Classifier)
    msg = f'Unsupported reason "{text}". Use one of: {allowed}.'
    raise InvalidInputError(msg)
