"""Release runs.

One run is one of three modes, each a fail-fast list of steps:
- merge: validate a release branch, merge it and tag the release
- build: configure, compile, package and optionally sign a tagged release
- sign: sign artifacts that already exist
"""

from __future__ import annotations
