"""installflow developer CLI.

    python -m installflow controls SNAPSHOT.yaml   Print derived control state
    python -m installflow stages [--set FLAG] [--fail STAGE]
    python -m installflow config                   Show resolved settings

Verbosity flags (-q, -v, -d) may appear in any position.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import yaml

from installflow import __version__
from installflow.controls import AppSnapshot, compute_control_state
from installflow.core.config import ConfigResolver, WizardConfig
from installflow.core.errors import InstallFlowError
from installflow.core.logging import get_logger, set_colors, set_verbosity
from installflow.wizard.retry import StageOutcome, StageStatus
from installflow.wizard.stages import PREDICATES, load_stage_plan

_logger = get_logger(__name__)

_VERBOSITY_FLAGS = {
    "-q": "quiet",
    "--quiet": "quiet",
    "-v": "verbose",
    "--verbose": "verbose",
    "-d": "debug",
    "--debug": "debug",
}

_CONFIG_KEYS = (
    "logging.level",
    "logging.color",
    "transition.duration_ms",
    "features.migration",
    "features.presets",
    "features.epic_login",
    "migration.extension",
    "progress.pipeline_watermark",
    "pipeline.definition",
    "ui.locale",
)


def _print_usage() -> None:
    print(f"installflow {__version__}")
    print()
    print("Usage:")
    print("  installflow controls SNAPSHOT          Print disabled controls for a snapshot file")
    print("  installflow stages [options]           Show which import stages would run")
    print("  installflow config                     Show resolved configuration")
    print()
    print("Stage options:")
    print("  --set FLAG                             Turn a session flag on (repeatable)")
    print("  --fail STAGE                           Treat STAGE as skipped after failure")
    print("  --no-migration / --no-presets          Disable a feature")
    print("  --pipeline PATH                        Custom stage plan YAML")
    print()
    print("Flags: " + ", ".join(sorted(PREDICATES)))


def _split_verbosity(argv: list[str]) -> tuple[list[str], dict[str, Any]]:
    cli_args: dict[str, Any] = {}
    rest: list[str] = []
    for arg in argv:
        level = _VERBOSITY_FLAGS.get(arg)
        if level is not None:
            cli_args.setdefault("logging", {})["level"] = level
        else:
            rest.append(arg)
    return rest, cli_args


def _controls_command(args: list[str]) -> int:
    if not args:
        _logger.error("controls: missing SNAPSHOT path")
        return 2
    path = Path(args[0])
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        _logger.error(f"controls: cannot read {path}: {e}")
        return 1
    if not isinstance(data, dict):
        _logger.error("controls: snapshot must be a mapping")
        return 1

    state = compute_control_state(AppSnapshot.from_mapping(data))
    for name, disabled in state.to_dict().items():
        print(f"{'disabled' if disabled else 'enabled ':8}  {name}")
    return 0


def _stages_command(args: list[str], cli_args: dict[str, Any]) -> int:
    flags = {name: False for name in PREDICATES}
    failing: set[str] = set()
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--set" and i + 1 < len(args):
            name = args[i + 1]
            if name not in flags:
                _logger.error(f"stages: unknown flag '{name}'")
                return 2
            flags[name] = True
            i += 1
        elif arg == "--fail" and i + 1 < len(args):
            failing.add(args[i + 1])
            i += 1
        elif arg == "--no-migration":
            cli_args.setdefault("features", {})["migration"] = False
        elif arg == "--no-presets":
            cli_args.setdefault("features", {})["presets"] = False
        elif arg == "--pipeline" and i + 1 < len(args):
            cli_args.setdefault("pipeline", {})["definition"] = args[i + 1]
            i += 1
        else:
            _logger.error(f"stages: unexpected argument '{arg}'")
            return 2
        i += 1

    config = WizardConfig.from_resolver(ConfigResolver(cli_args=cli_args))
    plan = load_stage_plan(config.pipeline_definition)

    outcomes: dict[str, StageOutcome] = {}
    for stage in plan:
        if not stage.is_active(flags, config.features, outcomes):
            outcomes[stage.id] = StageOutcome(stage.id, StageStatus.NOT_RUN)
        elif stage.id in failing:
            outcomes[stage.id] = StageOutcome(stage.id, StageStatus.SKIPPED, 1, "simulated failure")
        else:
            outcomes[stage.id] = StageOutcome(stage.id, StageStatus.SUCCEEDED, 1)
        print(f"{outcomes[stage.id].status.value:9}  {stage.id}")
    return 0


def _config_command(cli_args: dict[str, Any]) -> int:
    resolver = ConfigResolver(cli_args=cli_args)
    for key in _CONFIG_KEYS:
        value = resolver.resolve_optional(key)
        source = resolver.resolve(key)[1] if value is not None else "-"
        print(f"{key:28} {value!s:12} ({source})")
    WizardConfig.from_resolver(resolver)
    return 0


def main(argv: list[str] | None = None) -> int:
    args, cli_args = _split_verbosity(list(sys.argv[1:] if argv is None else argv))

    try:
        resolver = ConfigResolver(cli_args=cli_args)
        set_verbosity(resolver.resolve_logging_level())
        set_colors(resolver.resolve_bool("logging.color", True))
    except InstallFlowError as e:
        _logger.error(str(e))
        return 1

    if not args or args[0] in ("-h", "--help", "help"):
        _print_usage()
        return 0

    command, rest = args[0], args[1:]
    try:
        if command == "controls":
            return _controls_command(rest)
        if command == "stages":
            return _stages_command(rest, cli_args)
        if command == "config":
            return _config_command(cli_args)
        if command == "version":
            print(__version__)
            return 0
    except InstallFlowError as e:
        _logger.error(str(e))
        return 1

    _logger.error(f"Unknown command: {command}")
    _print_usage()
    return 2


if __name__ == "__main__":
    sys.exit(main())
