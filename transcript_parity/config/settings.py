"""
Configuration loader for parity validation runs

Merges built-in defaults, an optional YAML settings file and environment
overrides, validates the result against parity_config.schema.json and
returns immutable configuration objects.
"""

import json
import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import jsonschema
import yaml

from transcript_parity.comparison.comparator import ComparisonOptions
from transcript_parity.comparison.profile import GameProfile, load_profile
from transcript_parity.domain.transcript import CommandSequence
from transcript_parity.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "parity_config.schema.json"

# Environment overrides
ENV_INTERPRETER_PATH = "PARITY_INTERPRETER_PATH"
ENV_GAME_FILE_PATH = "PARITY_GAME_FILE_PATH"
ENV_SEEDS = "PARITY_SEEDS"
ENV_COMMAND_TIMEOUT = "PARITY_COMMAND_TIMEOUT"

DEFAULT_INTERPRETER_PATHS = (
    "/usr/local/bin/dfrotz",
    "/usr/bin/dfrotz",
    "/opt/homebrew/bin/dfrotz",
    "dfrotz",
)
DEFAULT_GAME_FILE_PATH = "reference/COMPILED/zork1.z3"
DEFAULT_INTERPRETER_ARGS = ("-p", "-w", "80", "-h", "24")
DEFAULT_SEED_ARGS = ("-s", "{seed}")
DEFAULT_QUIT_COMMANDS = ("quit", "y")

DEFAULT_SEEDS = (12345, 67890, 54321, 99999, 11111, 22222, 33333, 44444, 55555, 77777)
DEFAULT_COMMANDS_PER_SEED = 250
DEFAULT_FILLER_COMMANDS = (
    "look", "inventory", "n", "s", "e", "w", "u", "d", "examine me", "wait", "look around",
)


@dataclass(frozen=True)
class ReferenceConfig:
    """
    How to run the reference interpreter.

    Attributes:
        interpreter_path: Interpreter executable (path or name on PATH)
        game_file_path: Story file passed to the interpreter
        timeout: Per-command response window in seconds
        interpreter_args: Arguments placed before the story file
        seed_args: Seed arguments; "{seed}" is replaced by the seed
        quit_commands: Lines sent to ask the interpreter to exit
        grace_period: Seconds to wait after quit (and after terminate)
        termination_deadline: Hard upper bound on shutdown, in seconds
    """

    interpreter_path: str = DEFAULT_INTERPRETER_PATHS[-1]
    game_file_path: str = DEFAULT_GAME_FILE_PATH
    timeout: float = 5.0
    interpreter_args: Tuple[str, ...] = DEFAULT_INTERPRETER_ARGS
    seed_args: Tuple[str, ...] = DEFAULT_SEED_ARGS
    quit_commands: Tuple[str, ...] = DEFAULT_QUIT_COMMANDS
    grace_period: float = 0.5
    termination_deadline: float = 2.0

    def __post_init__(self) -> None:
        for name in ("interpreter_args", "seed_args", "quit_commands"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    def build_argv(self, seed: Optional[int] = None) -> List[str]:
        """Command line for one session."""
        argv = [self.interpreter_path, *self.interpreter_args]
        if seed is not None:
            argv.extend(arg.replace("{seed}", str(seed)) for arg in self.seed_args)
        argv.append(self.game_file_path)
        return argv


@dataclass(frozen=True)
class ParityTestConfig:
    """
    What to validate and when the run passes.

    Attributes:
        seeds: Seeds for run_with_seeds
        commands_per_seed: Minimum commands per seeded session
        comparison: Comparator options
        max_logic_differences: Logic differences tolerated before failing
        max_workers: Parallel seed sessions (1 = sequential)
        filler_commands: Replayed in order to pad short command lists
        command_sequences: Sequences replayed for every seed, in order
    """

    seeds: Tuple[int, ...] = DEFAULT_SEEDS
    commands_per_seed: int = DEFAULT_COMMANDS_PER_SEED
    comparison: ComparisonOptions = field(default_factory=ComparisonOptions)
    max_logic_differences: int = 0
    max_workers: int = 1
    filler_commands: Tuple[str, ...] = DEFAULT_FILLER_COMMANDS
    command_sequences: Tuple[CommandSequence, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "seeds", tuple(self.seeds))
        object.__setattr__(self, "filler_commands", tuple(self.filler_commands))
        object.__setattr__(self, "command_sequences", tuple(self.command_sequences))


@dataclass(frozen=True)
class Settings:
    """Everything a validation run needs, resolved and validated."""

    parity: ParityTestConfig
    reference: ReferenceConfig
    profile: GameProfile
    sequence_dir: Optional[str] = None


def resolve_interpreter_path(candidates=DEFAULT_INTERPRETER_PATHS) -> str:
    """First candidate that exists on disk or on PATH; the last one otherwise."""
    for candidate in candidates:
        if os.path.isfile(candidate) or shutil.which(candidate):
            return candidate
    return candidates[-1]


def _default_settings() -> Dict[str, Any]:
    return {
        "profile": None,
        "sequences": None,
        "reference": {
            "interpreter_path": resolve_interpreter_path(),
            "game_file_path": DEFAULT_GAME_FILE_PATH,
        },
        "parity": {"comparison": {}},
    }


def _deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        logger.error(f"Settings file not found: {path}")
        raise ConfigurationError(f"Settings file not found: {path}") from e
    except yaml.YAMLError as e:
        logger.error(f"Invalid YAML in settings file: {e}")
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        logger.warning(f"Empty settings file: {path}")
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a mapping")
    return data


def _parse_seeds(raw: str) -> List[int]:
    try:
        seeds = [int(part) for part in raw.replace(" ", "").split(",") if part]
    except ValueError as e:
        raise ConfigurationError(f"{ENV_SEEDS} must be a comma-separated list of integers: {raw!r}") from e
    if not seeds:
        raise ConfigurationError(f"{ENV_SEEDS} is empty")
    return seeds


def _apply_env_overrides(data: Dict[str, Any], env: Mapping[str, str]) -> Dict[str, Any]:
    reference = dict(data.get("reference", {}))
    parity = dict(data.get("parity", {}))

    if env.get(ENV_INTERPRETER_PATH) is not None:
        reference["interpreter_path"] = env[ENV_INTERPRETER_PATH]
    if env.get(ENV_GAME_FILE_PATH) is not None:
        reference["game_file_path"] = env[ENV_GAME_FILE_PATH]
    if env.get(ENV_COMMAND_TIMEOUT):
        try:
            reference["timeout"] = float(env[ENV_COMMAND_TIMEOUT])
        except ValueError as e:
            raise ConfigurationError(
                f"{ENV_COMMAND_TIMEOUT} must be a number of seconds: {env[ENV_COMMAND_TIMEOUT]!r}"
            ) from e
    if env.get(ENV_SEEDS):
        parity["seeds"] = _parse_seeds(env[ENV_SEEDS])

    return {**data, "reference": reference, "parity": parity}


def _validate(data: Dict[str, Any]) -> None:
    try:
        with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
            schema = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {SCHEMA_PATH}: {e}") from e

    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        location = "/".join(str(part) for part in e.absolute_path) or "<root>"
        logger.error(f"Settings failed schema validation at {location}: {e.message}")
        raise ConfigurationError(f"Invalid setting at {location}: {e.message}") from e


def load_settings(
    path: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Load settings from defaults, an optional YAML file and the environment.

    Precedence (highest first): environment, YAML file, defaults.

    Args:
        path: YAML settings file (optional)
        env: Environment mapping (defaults to os.environ)

    Returns:
        Immutable Settings

    Raises:
        ConfigurationError: If the file or any value is invalid
    """
    environment = os.environ if env is None else env

    data = _default_settings()
    if path is not None:
        data = _deep_merge(data, _load_yaml(path))
        logger.info(f"Loaded settings from {path}")
    data = _apply_env_overrides(data, environment)
    _validate(data)

    profile = load_profile(data.get("profile"))

    comparison_data = dict(data["parity"].get("comparison", {}))
    comparison_data.setdefault("known_variations", list(profile.known_variations))
    parity_data = {k: v for k, v in data["parity"].items() if k != "comparison"}

    settings = Settings(
        parity=ParityTestConfig(comparison=ComparisonOptions(**comparison_data), **parity_data),
        reference=ReferenceConfig(**data["reference"]),
        profile=profile,
        sequence_dir=data.get("sequences"),
    )
    logger.debug(
        f"Settings resolved: interpreter={settings.reference.interpreter_path}, "
        f"seeds={list(settings.parity.seeds)}"
    )
    return settings


def validate_reference_config(config: ReferenceConfig) -> Tuple[List[str], List[str]]:
    """
    Check a reference configuration without raising.

    Returns:
        (errors, warnings): errors make a run impossible; warnings usually
        mean the run will degrade to implementation-only mode
    """
    errors: List[str] = []
    warnings: List[str] = []

    if not config.interpreter_path:
        errors.append("Interpreter path is not set")
    elif not (os.path.isfile(config.interpreter_path) or shutil.which(config.interpreter_path)):
        warnings.append(f"Interpreter not found: {config.interpreter_path}")

    if not config.game_file_path:
        errors.append("Game file path is not set")
    elif not os.path.isfile(config.game_file_path):
        warnings.append(f"Game file not found: {config.game_file_path}")

    if config.timeout <= 0:
        errors.append(f"Timeout must be positive, got {config.timeout}")
    elif config.timeout < 1:
        warnings.append(f"Timeout of {config.timeout}s may be too short for the interpreter")

    if config.grace_period > config.termination_deadline:
        warnings.append("Grace period exceeds the termination deadline")

    return errors, warnings
