"""Map free-text broadcaster labels onto the channels the site links to."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote


class CanonicalChannel(Enum):
    SKY_SPORTS = ("Sky Sports", "sky-sports")
    TNT_SPORTS = ("TNT Sports", "tnt-sports")
    AMAZON_PRIME = ("Amazon Prime", None)
    TERRESTRIAL = ("Terrestrial TV", None)
    OTHER = ("Other", None)

    def __init__(self, display_name: str, slug: str | None) -> None:
        self.display_name = display_name
        self.slug = slug


# Named routes for channels without a dedicated /vibe/<slug> page.
NAMED_ROUTES: dict[str, str] = {
    CanonicalChannel.AMAZON_PRIME.display_name: "/vibe/amazon-prime",
    CanonicalChannel.TERRESTRIAL.display_name: "/vibe/terrestrial-tv",
}

# Checked in order; the first keyword hit wins.
LABEL_RULES: tuple[tuple[CanonicalChannel, tuple[str, ...]], ...] = (
    (CanonicalChannel.SKY_SPORTS, ("sky",)),
    (CanonicalChannel.TNT_SPORTS, ("tnt", "bt sport")),
    (CanonicalChannel.AMAZON_PRIME, ("amazon",)),
    (CanonicalChannel.TERRESTRIAL, ("bbc", "itv", "channel 4", "terrestrial")),
)

# Tournaments shown free-to-air, used when the listing has no channel label.
FREE_TO_AIR_KEYWORDS: tuple[str, ...] = ("six nations",)


@dataclass(frozen=True)
class ChannelMatch:
    channel: CanonicalChannel
    display_name: str
    slug: str | None
    link: str


def build_channel_link(slug: str | None, display_name: str) -> str:
    if slug:
        return f"/vibe/{slug}"
    route = NAMED_ROUTES.get(display_name)
    if route:
        return route
    return f"/pubs?amenities={quote(display_name, safe='')}"


def _match(channel: CanonicalChannel, display_name: str | None = None) -> ChannelMatch:
    name = display_name or channel.display_name
    return ChannelMatch(
        channel=channel,
        display_name=name,
        slug=channel.slug,
        link=build_channel_link(channel.slug, name),
    )


def classify(raw_label: str | None, event_title: str | None = None) -> ChannelMatch:
    """Classify a broadcaster label, falling back to the event title when blank.

    Unknown broadcasters are OTHER but keep their trimmed label as the display
    name, so the allowed-channel set can still name them explicitly.
    """

    label = (raw_label or "").strip()
    if not label:
        title = (event_title or "").lower()
        if any(keyword in title for keyword in FREE_TO_AIR_KEYWORDS):
            return _match(CanonicalChannel.TERRESTRIAL)
        return _match(CanonicalChannel.OTHER)

    lowered = label.lower()
    for channel, keywords in LABEL_RULES:
        if any(keyword in lowered for keyword in keywords):
            return _match(channel)
    return _match(CanonicalChannel.OTHER, display_name=label)
