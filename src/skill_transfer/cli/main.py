from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

import yaml

from skill_transfer.config.models import REQUIRED_PARAMETERS
from skill_transfer.config.resolver import load_env, resolve_config
from skill_transfer.documents.store import OBJECT_FEATURES_KEY
from skill_transfer.documents.tree import MappingNode, to_python
from skill_transfer.engine.manager import KnowledgeManager
from skill_transfer.errors import ConfigError, DetectionError, LoadError
from skill_transfer.service.front import GET_MOTION_SPEC, GET_TASK_SPEC, KnowledgeService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_REQUEST_FAILED = 1
EXIT_STARTUP_FAILED = 2


def _print_yaml(title: str, payload: object) -> None:
    """Prints a human-readable YAML view of structured data."""
    print(f"\n=== {title} ===\n")
    print(yaml.safe_dump(payload, sort_keys=False, allow_unicode=True))


def _add_startup_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--params-file", default=None, help="YAML file with startup parameters")
    p.add_argument("--env-file", default=None, help=".env file to load (default: search from cwd)")
    for name in REQUIRED_PARAMETERS:
        p.add_argument(f"--{name.replace('_', '-')}", dest=name, default=None)
    p.add_argument("--detector-url", dest="detector_url", default=None)
    p.add_argument("--detector-timeout-s", dest="detector_timeout_s", type=float, default=None)
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="skill-transfer",
        description="Compose motion specs from task, setup and motion template documents.",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_task = sub.add_parser("task-spec", help="Print the number of motion phases")
    _add_startup_args(p_task)

    p_motion = sub.add_parser("motion-spec", help="Print the composed spec and stop condition of a phase")
    _add_startup_args(p_motion)
    p_motion.add_argument("--index", type=int, required=True)

    p_features = sub.add_parser("features", help="Acquire required object features and print them")
    _add_startup_args(p_features)

    return ap


def start_service(args: argparse.Namespace) -> KnowledgeService:
    """Resolves config, loads documents and runs feature acquisition.

    Raises:
        ConfigError, LoadError, DetectionError: startup is not possible.
    """
    environ = load_env(args.env_file)
    cli_params = {
        name: getattr(args, name, None)
        for name in (*REQUIRED_PARAMETERS, "detector_url", "detector_timeout_s")
    }
    cfg = resolve_config(cli_params=cli_params, params_file=args.params_file, environ=environ)
    manager = KnowledgeManager(cfg)
    return manager.start()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        service = start_service(args)
    except (ConfigError, LoadError, DetectionError) as e:
        logger.error("Startup failed: %s", e)
        if e.data:
            logger.error("Details: %s", e.data)
        return EXIT_STARTUP_FAILED

    if args.cmd == "task-spec":
        _print_yaml("TASK SPEC", service.handle(GET_TASK_SPEC))
        return EXIT_OK

    if args.cmd == "motion-spec":
        out = service.handle(GET_MOTION_SPEC, {"index": args.index})
        if not out["ok"]:
            _print_yaml("MOTION SPEC FAILED", out["error"])
            return EXIT_REQUEST_FAILED
        _print_yaml("STOP CONDITION", out["stop_condition"])
        print("=== SPEC ===\n")
        print(out["spec"])
        return EXIT_OK

    if args.cmd == "features":
        setup = service.manager.store.setup
        features = setup.get(OBJECT_FEATURES_KEY) if isinstance(setup, MappingNode) else None
        _print_yaml("OBJECT FEATURES", to_python(features) if features is not None else {})
        return EXIT_OK

    raise SystemExit(f"Unknown command: {args.cmd}")


if __name__ == "__main__":
    raise SystemExit(main())
