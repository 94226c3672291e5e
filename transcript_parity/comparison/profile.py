"""
Game profile - RNG pools and game-specific text data

Pool membership, banner patterns and movement verbs are English-specific
string lists; they live in a YAML data file validated against a JSON
schema so another game (or another release) only needs a new profile.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Pattern, Tuple, Union

import jsonschema
import yaml

from transcript_parity.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
DEFAULT_PROFILE_PATH = DATA_DIR / "zork1.yaml"
PROFILE_SCHEMA_PATH = DATA_DIR / "profile.schema.json"

OBJECT_PLACEHOLDER = "{object}"

_WHITESPACE = re.compile(r"\s+")


def canonical_message(text: str) -> str:
    """Collapse whitespace runs to one space and trim."""
    return _WHITESPACE.sub(" ", text).strip()


def _entry_pattern(entry: str) -> str:
    """Turn a pool entry into a full-match regex; {object} matches any name."""
    parts = [re.escape(part) for part in entry.split(OBJECT_PLACEHOLDER)]
    return ".+?".join(parts)


@dataclass(frozen=True)
class RngPool:
    """
    A named set of interchangeable random responses.

    Attributes:
        name: Pool identifier (e.g. "YUKS")
        entries: Literal response strings; "{object}" marks an object name
    """

    name: str
    entries: Tuple[str, ...]
    _literals: FrozenSet[str] = field(init=False, repr=False, compare=False)
    _patterns: Tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        entries = tuple(canonical_message(entry) for entry in self.entries)
        object.__setattr__(self, "entries", entries)
        object.__setattr__(
            self,
            "_literals",
            frozenset(e for e in entries if OBJECT_PLACEHOLDER not in e),
        )
        object.__setattr__(
            self,
            "_patterns",
            tuple(_entry_pattern(e) for e in entries if OBJECT_PLACEHOLDER in e),
        )

    def matches(self, text: str, ignore_case: bool = False) -> bool:
        """True if text is one of this pool's responses."""
        message = canonical_message(text)
        if not message:
            return False

        if ignore_case:
            folded = message.casefold()
            if any(folded == literal.casefold() for literal in self._literals):
                return True
            flags = re.IGNORECASE
        else:
            if message in self._literals:
                return True
            flags = 0

        return any(re.fullmatch(pattern, message, flags) for pattern in self._patterns)


@dataclass(frozen=True)
class GameProfile:
    """
    Immutable game-specific text data shared by the extractor and classifier.

    Attributes:
        name: Profile identifier
        rng_pools: Configured RNG pools, in file order
        header_patterns: Compiled per-line banner patterns
        movement_commands: Bare movement verbs ("n", "north", "climb", ...)
        movement_prefixes: Verbs taking a direction ("go", "walk")
        known_variations: Default acceptable-variation substrings
    """

    name: str
    rng_pools: Tuple[RngPool, ...]
    header_patterns: Tuple[Pattern, ...] = ()
    movement_commands: FrozenSet[str] = frozenset()
    movement_prefixes: Tuple[str, ...] = ()
    known_variations: Tuple[str, ...] = ()

    def pool(self, name: str) -> Optional[RngPool]:
        for pool in self.rng_pools:
            if pool.name == name:
                return pool
        return None

    def is_movement_command(self, command: str) -> bool:
        """True if the command moves the player to another room."""
        words = command.strip().lower().split()
        if not words:
            return False
        if len(words) == 1:
            return words[0] in self.movement_commands
        # "go north", "walk in"
        return (
            len(words) == 2
            and words[0] in self.movement_prefixes
            and words[1] in self.movement_commands
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameProfile":
        """
        Build a profile from already-validated profile data.

        Raises:
            ConfigurationError: If a header pattern is not a valid regex
        """
        pools = tuple(
            RngPool(name=name, entries=tuple(entries))
            for name, entries in data["rng_pools"].items()
        )

        header_patterns = []
        for pattern in data.get("header_patterns", []):
            try:
                header_patterns.append(re.compile(pattern, re.IGNORECASE))
            except re.error as e:
                raise ConfigurationError(f"Invalid header pattern {pattern!r}: {e}") from e

        return cls(
            name=data["name"],
            rng_pools=pools,
            header_patterns=tuple(header_patterns),
            movement_commands=frozenset(c.lower() for c in data.get("movement_commands", [])),
            movement_prefixes=tuple(p.lower() for p in data.get("movement_prefixes", [])),
            known_variations=tuple(data.get("known_variations", [])),
        )


def _load_schema() -> Dict[str, Any]:
    with open(PROFILE_SCHEMA_PATH, "r", encoding="utf-8") as f:
        return json.load(f)


def load_profile(path: Optional[Union[str, Path]] = None) -> GameProfile:
    """
    Load a game profile from YAML and validate it against the profile schema.

    Args:
        path: Profile YAML path (defaults to the bundled Zork I profile)

    Returns:
        Immutable GameProfile

    Raises:
        ConfigurationError: If the file is missing, unparsable or invalid
    """
    profile_path = Path(path) if path is not None else DEFAULT_PROFILE_PATH

    try:
        with open(profile_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        logger.error(f"Game profile not found: {profile_path}")
        raise ConfigurationError(f"Game profile not found: {profile_path}") from e
    except yaml.YAMLError as e:
        logger.error(f"Invalid YAML in game profile: {e}")
        raise ConfigurationError(f"Invalid YAML in {profile_path}: {e}") from e

    try:
        jsonschema.validate(instance=data, schema=_load_schema())
    except jsonschema.ValidationError as e:
        logger.error(f"Game profile failed schema validation: {e.message}")
        raise ConfigurationError(f"Game profile validation failed: {e.message}") from e

    profile = GameProfile.from_dict(data)
    logger.debug(
        f"Loaded game profile '{profile.name}' with {len(profile.rng_pools)} RNG pools"
    )
    return profile


@lru_cache(maxsize=1)
def default_profile() -> GameProfile:
    """The bundled profile, loaded once per process."""
    return load_profile()
