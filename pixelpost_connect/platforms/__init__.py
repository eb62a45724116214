"""
Platform-specific profile parsing and publishing.
"""

from typing import Dict, Type
from .base import ProfileParser, PlatformPublisher
from .instagram import InstagramProfileParser, InstagramPublisher
from .facebook import FacebookProfileParser, FacebookPublisher
from .twitter import TwitterProfileParser, TwitterPublisher, compose_tweet_text
from .linkedin import LinkedInProfileParser, LinkedInPublisher
from .pinterest import PinterestProfileParser, PinterestPublisher

PROFILE_PARSERS: Dict[str, ProfileParser] = {
    parser.platform: parser
    for parser in (
        InstagramProfileParser(),
        FacebookProfileParser(),
        TwitterProfileParser(),
        LinkedInProfileParser(),
        PinterestProfileParser(),
    )
}

PUBLISHERS: Dict[str, Type[PlatformPublisher]] = {
    publisher.platform: publisher
    for publisher in (
        InstagramPublisher,
        FacebookPublisher,
        TwitterPublisher,
        LinkedInPublisher,
        PinterestPublisher,
    )
}

def get_profile_parser(platform: str) -> ProfileParser:
    # Lazy import: core.oauth_flow imports this package
    from ..core.registry import normalize_platform
    return PROFILE_PARSERS[normalize_platform(platform)]

__all__ = [
    'ProfileParser',
    'PlatformPublisher',
    'InstagramPublisher',
    'FacebookPublisher',
    'TwitterPublisher',
    'LinkedInPublisher',
    'PinterestPublisher',
    'PROFILE_PARSERS',
    'PUBLISHERS',
    'get_profile_parser',
    'compose_tweet_text',
]
