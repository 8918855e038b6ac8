"""
Command line interface for the EvoNAS SDK.

Examples
--------
Run a genetic search on a saved tensor dataset::

    python cli.py run --data data/letters.pt --strategy genetic --profile fast

Explain a configuration key::

    python cli.py explain genetic.elite_ratio
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict

from evonas import EvoNAS
from evonas.exceptions import EvoNASError
from evonas.utils import ConfigLoader
from evonas.utils.profiles import list_profiles


def _default_config_path(path: str) -> Path:
    candidate = Path(path)
    if candidate.exists():
        return candidate
    raise FileNotFoundError(f"Configuration file not found: {candidate}")


def _cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if args.seed is not None:
        overrides.setdefault("experiment", {})["seed"] = args.seed
    if args.log_level:
        overrides.setdefault("logging", {})["level"] = args.log_level
    return overrides


def _run_command(args: argparse.Namespace) -> None:
    overrides = _cli_overrides(args)
    if args.config:
        config: Any = ConfigLoader(_default_config_path(args.config)).load(overrides=overrides).to_dict()
    else:
        config = overrides or None
    nas = EvoNAS(
        data=args.data,
        strategy=args.strategy,
        profile=args.profile,
        config=config,
        run_name=args.run_name,
    )
    result = nas.run()
    print(json.dumps({"run_id": result.run_id, "metrics": result.metrics}, indent=2, default=str))
    print(result.summary())


def _describe_config_command(args: argparse.Namespace) -> None:
    if args.key:
        print(EvoNAS.explain(args.key))
        return
    EvoNAS.describe_config(section=args.section, as_markdown=args.markdown, to_console=True)


def _explain_command(args: argparse.Namespace) -> None:
    print(EvoNAS.explain(args.key))


def _profiles_command(_: argparse.Namespace) -> None:
    for name, profile in EvoNAS.available_profiles().items():
        print(f"{name}:")
        for section, values in profile.items():
            rendered = ", ".join(f"{key}={value}" for key, value in values.items())
            print(f"  {section}: {rendered}")


def _generate_config_docs_command(args: argparse.Namespace) -> None:
    path = EvoNAS.generate_config_docs(Path(args.output))
    print(f"Configuration reference generated at {path.resolve()}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="evonas", description="EvoNAS architecture search CLI")
    subparsers = parser.add_subparsers(dest="command")

    profile_choices = sorted(list_profiles().keys())

    run_parser = subparsers.add_parser("run", help="Execute an architecture search.")
    run_parser.add_argument("--data", help="Tensor dataset saved with torch.save. Defaults to `data.path`.")
    run_parser.add_argument("--strategy", choices=["genetic", "random"], help="Search strategy.")
    run_parser.add_argument("--config", help="Optional configuration file (YAML/JSON).")
    run_parser.add_argument("--profile", choices=profile_choices, help="Apply a configuration profile before overrides.")
    run_parser.add_argument("--run-name", help="Optional custom name used for the run directory (slugified).")
    run_parser.add_argument("--seed", type=int, help="Seed for a reproducible search.")
    run_parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Console log level.")
    run_parser.set_defaults(func=_run_command)

    describe_parser = subparsers.add_parser("describe-config", help="Display EvoNAS configuration schema.")
    describe_parser.add_argument("--section", help="Optional configuration section to filter.")
    describe_parser.add_argument("--markdown", action="store_true", help="Render the output as markdown.")
    describe_parser.add_argument("--key", help="Explain a single configuration key instead of listing the table.")
    describe_parser.set_defaults(func=_describe_config_command)

    explain_parser = subparsers.add_parser("explain", help="Explain a configuration key (e.g. genetic.generations).")
    explain_parser.add_argument("key", help="Dotted or bare configuration key.")
    explain_parser.set_defaults(func=_explain_command)

    profiles_parser = subparsers.add_parser("profiles", help="List the predefined configuration profiles.")
    profiles_parser.set_defaults(func=_profiles_command)

    config_doc_parser = subparsers.add_parser("generate-config-docs", help="Write CONFIG.md from the schema.")
    config_doc_parser.add_argument("--output", default="CONFIG.md", help="Destination markdown file (default: CONFIG.md).")
    config_doc_parser.set_defaults(func=_generate_config_docs_command)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)
    if argv and argv[0].startswith("--"):
        argv = ["run", *argv]
    if not argv:
        parser.print_help()
        return
    parsed = parser.parse_args(argv)
    if not hasattr(parsed, "func"):
        parser.print_help()
        return
    try:
        parsed.func(parsed)
    except EvoNASError as exc:
        raise SystemExit(f"error: {exc}") from exc


if __name__ == "__main__":
    main()
