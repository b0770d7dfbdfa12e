"""
Command-line surface for feature-model configuration.

Registers the "Feature models" option group on an argparse parser and
turns the parsed options into a configured FeatureModelOptions.

Flags (each takes one required argument, may repeat, order matters):
    --featureModelDimacs FILE
    --featureModelFExpr FILE
    --featureModelClass CLASSNAME
    --typeSystemFeatureModelDimacs FILE

Sources may also be listed in a YAML file passed with --config; those are
applied before the command-line sources.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional, Sequence

import yaml

from .analysis import ModelReport, analyze_model
from .composer import FeatureModelOptions
from .errors import ConfigurationError, MissingFileError
from .loader import SourceDescriptor, SourceKind
from .serialization import models_to_json, models_to_yaml

logger = logging.getLogger(__name__)

SOURCES_DEST = "feature_model_sources"

_FLAGS = [
    ("--featureModelDimacs", SourceKind.DIMACS, "file",
     "Dimacs file describing a feature model."),
    ("--featureModelFExpr", SourceKind.FEXPR, "file",
     "File in FExpr format describing a feature model. May be repeated; all expressions are conjoined."),
    ("--featureModelClass", SourceKind.FACTORY_CLASS, "classname",
     "Class describing a feature model (package.module.Class)."),
    ("--typeSystemFeatureModelDimacs", SourceKind.TYPE_SYSTEM_DIMACS, "file",
     "Distinct feature model for the type system."),
]

# YAML keys naming the locator for each kind
_CONFIG_LOCATOR_KEYS = {
    SourceKind.DIMACS: "path",
    SourceKind.FEXPR: "path",
    SourceKind.FACTORY_CLASS: "class",
    SourceKind.TYPE_SYSTEM_DIMACS: "path",
}


class _SourceAction(argparse.Action):
    """Append a SourceDescriptor to one shared list, keeping command-line order."""

    def __init__(self, option_strings, dest, source_kind=None, **kwargs):
        super().__init__(option_strings, dest, **kwargs)
        self.source_kind = source_kind

    def __call__(self, parser, namespace, values, option_string=None):
        sources = list(getattr(namespace, self.dest, None) or [])
        sources.append(SourceDescriptor(self.source_kind, values))
        setattr(namespace, self.dest, sources)


def add_feature_model_arguments(parser: argparse.ArgumentParser) -> argparse._ArgumentGroup:
    """Register the feature-model flags on `parser` and return their group."""
    group = parser.add_argument_group("Feature models")
    for flag, kind, metavar, help_text in _FLAGS:
        group.add_argument(
            flag,
            action=_SourceAction,
            source_kind=kind,
            dest=SOURCES_DEST,
            metavar=metavar,
            help=help_text,
        )
    parser.set_defaults(**{SOURCES_DEST: []})
    return group


def load_config_sources(config_path: str) -> List[SourceDescriptor]:
    """
    Read source descriptors from a YAML file.

    Expected layout:
        sources:
          - kind: dimacs          # dimacs | fexpr | class | type_system_dimacs
            path: model.dimacs    # relative to the config file
          - kind: class
            class: mypkg.models.Factory

    Raises:
        MissingFileError: If the config file doesn't exist
        ConfigurationError: If the YAML is malformed or an entry is invalid
    """
    if not os.path.isfile(config_path):
        raise MissingFileError(config_path)

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"{config_path}: cannot read file: {e}", locator=config_path) from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"{config_path}: invalid YAML: {e}", locator=config_path) from e

    if data is None:
        return []
    if not isinstance(data, dict) or not isinstance(data.get("sources", []), list):
        raise ConfigurationError(f"{config_path}: expected a mapping with a 'sources' list", locator=config_path)

    base_dir = os.path.dirname(os.path.abspath(config_path))
    descriptors = []
    for index, entry in enumerate(data.get("sources", []), start=1):
        if not isinstance(entry, dict):
            raise ConfigurationError(f"{config_path}: source #{index} is not a mapping", locator=config_path)
        try:
            kind = SourceKind(entry.get("kind"))
        except ValueError:
            raise ConfigurationError(
                f"{config_path}: source #{index} has unknown kind '{entry.get('kind')}'", locator=config_path
            )
        key = _CONFIG_LOCATOR_KEYS[kind]
        locator = entry.get(key)
        if not isinstance(locator, str) or not locator:
            raise ConfigurationError(f"{config_path}: source #{index} is missing '{key}'", locator=config_path)
        if kind.is_file:
            locator = os.path.join(base_dir, locator)
        descriptors.append(SourceDescriptor(kind, locator))

    logger.debug("Read %d feature model source(s) from %s", len(descriptors), config_path)
    return descriptors


def configure_from_namespace(
    namespace: argparse.Namespace,
    extra_sources: Sequence[SourceDescriptor] = (),
    guard_type_system: bool = True,
) -> FeatureModelOptions:
    """Apply `extra_sources` then the namespace's sources, and freeze the result."""
    options = FeatureModelOptions(guard_type_system=guard_type_system)
    options.apply_all(extra_sources)
    options.apply_all(getattr(namespace, SOURCES_DEST, None) or [])
    return options.freeze()


def configure_feature_models(argv: Sequence[str], guard_type_system: bool = True) -> FeatureModelOptions:
    """
    Parse feature-model flags from `argv` and build the configuration.

    Unrelated arguments are ignored so the flags can be embedded in a larger
    command line.

    Raises:
        ConfigurationError: On the first failing source
    """
    parser = argparse.ArgumentParser(add_help=False)
    add_feature_model_arguments(parser)
    namespace, _ = parser.parse_known_args(list(argv))
    return configure_from_namespace(namespace, guard_type_system=guard_type_system)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="featuremodel",
        description="Resolve the general and type-system feature models from the given sources.",
    )
    add_feature_model_arguments(parser)
    parser.add_argument("--config", metavar="file", help="YAML file listing additional feature model sources")
    parser.add_argument("--export", choices=["json", "yaml"], help="Print the resolved models in this format")
    parser.add_argument(
        "--allowTypeSystemOverride",
        action="store_true",
        help="Let a later --typeSystemFeatureModelDimacs replace an earlier one instead of failing",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def format_report(report: ModelReport) -> str:
    lines = [f"{report.label}:"]
    lines.append(f"  Source:       {report.source or '(none)'}")
    lines.append(f"  Features:     {report.total_features} (+{report.internal_features} internal)")
    lines.append(f"  Constraints:  {report.total_constraints}")
    lines.append(f"  Universal:    {'YES' if report.is_universal else 'NO'}")
    if report.enumerated:
        lines.append(f"  Satisfiable:  {'YES' if report.satisfiable else 'NO'}")
        lines.append(f"  Solutions:    {report.solution_count}")
    for warning in report.warnings:
        lines.append(f"  WARNING: {warning}")
    return "\n".join(lines)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        extra = load_config_sources(args.config) if args.config else []
        options = configure_from_namespace(
            args, extra_sources=extra, guard_type_system=not args.allowTypeSystemOverride
        )
    except ConfigurationError as e:
        parser.exit(2, f"{parser.prog}: error: {e}\n")

    general = options.feature_model
    type_system = options.type_system_feature_model

    if args.export == "json":
        print(models_to_json(general, type_system))
    elif args.export == "yaml":
        print(models_to_yaml(general, type_system), end="")
    else:
        print(format_report(analyze_model(general, label="Feature model")))
        ts_label = "Type-system feature model"
        if not options.has_type_system_feature_model:
            ts_label += " (falls back to feature model)"
        print(format_report(analyze_model(type_system, label=ts_label)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
