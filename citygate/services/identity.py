"""
User-agent rotation for outbound requests.

Each call assembles a browser user-agent from random platform, browser and
version choices so upstreams do not see a single static fingerprint.
"""

import random

PLATFORMS = [
    "Windows NT 10.0; Win64; x64",
    "Windows NT 11.0; Win64; x64",
    "Macintosh; Intel Mac OS X 10_15_7",
    "Macintosh; Intel Mac OS X 13_6_1",
    "X11; Linux x86_64",
    "X11; Ubuntu; Linux x86_64",
]

MOBILE_PLATFORMS = [
    "iPhone; CPU iPhone OS 17_4 like Mac OS X",
    "iPhone; CPU iPhone OS 16_6 like Mac OS X",
    "Linux; Android 14; Pixel 8",
    "Linux; Android 13; SM-S918B",
]

CHROME_MAJORS = range(118, 131)
FIREFOX_MAJORS = range(115, 132)
SAFARI_VERSIONS = ["16.6", "17.0", "17.3", "17.4"]


class UserAgentRotator:
    """Produces a fresh plausible user-agent string per call."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def next(self) -> str:
        builder = self._rng.choice(
            [self._chrome, self._chrome, self._firefox, self._safari, self._mobile]
        )
        return builder()

    def _chrome(self) -> str:
        platform = self._rng.choice(PLATFORMS)
        major = self._rng.choice(CHROME_MAJORS)
        build = self._rng.randint(5000, 6800)
        return (
            f"Mozilla/5.0 ({platform}) AppleWebKit/537.36 (KHTML, like Gecko) "
            f"Chrome/{major}.0.{build}.{self._rng.randint(0, 200)} Safari/537.36"
        )

    def _firefox(self) -> str:
        platform = self._rng.choice(PLATFORMS)
        major = self._rng.choice(FIREFOX_MAJORS)
        return (
            f"Mozilla/5.0 ({platform}; rv:{major}.0) Gecko/20100101 Firefox/{major}.0"
        )

    def _safari(self) -> str:
        version = self._rng.choice(SAFARI_VERSIONS)
        return (
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
            f"(KHTML, like Gecko) Version/{version} Safari/605.1.15"
        )

    def _mobile(self) -> str:
        platform = self._rng.choice(MOBILE_PLATFORMS)
        if platform.startswith("iPhone"):
            version = self._rng.choice(SAFARI_VERSIONS)
            return (
                f"Mozilla/5.0 ({platform}) AppleWebKit/605.1.15 (KHTML, like Gecko) "
                f"Version/{version} Mobile/15E148 Safari/604.1"
            )
        major = self._rng.choice(CHROME_MAJORS)
        return (
            f"Mozilla/5.0 ({platform}) AppleWebKit/537.36 (KHTML, like Gecko) "
            f"Chrome/{major}.0.0.0 Mobile Safari/537.36"
        )
