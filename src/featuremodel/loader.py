"""
Source Loader: turns a source descriptor into an expression or a model.

Four acquisition strategies exist:
    - DIMACS file              → whole FeatureModel (general slot)
    - FExpr file               → Expression, composed by the caller
    - Factory class            → whole FeatureModel built by user code
    - Type-system DIMACS file  → whole FeatureModel (type-system slot)

File-based sources are checked for existence before any parse. Every
failure is raised as a ConfigurationError subclass; nothing is retried.
"""

import importlib
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Union, runtime_checkable

from .dimacs import parse_dimacs_file
from .errors import FactoryResolutionError, MissingFileError
from .expressions import Expression
from .fexpr_parser import parse_expression_file
from .model import FeatureModel

logger = logging.getLogger(__name__)


class SourceKind(Enum):
    """Acquisition strategy for one configured source."""

    DIMACS = "dimacs"
    FEXPR = "fexpr"
    FACTORY_CLASS = "class"
    TYPE_SYSTEM_DIMACS = "type_system_dimacs"

    @property
    def is_whole_model(self) -> bool:
        """Whole-model sources populate the general slot outright."""
        return self in (SourceKind.DIMACS, SourceKind.FACTORY_CLASS)

    @property
    def is_file(self) -> bool:
        return self is not SourceKind.FACTORY_CLASS


@dataclass(frozen=True)
class SourceDescriptor:
    """
    One configured source.

    Properties:
        kind: Which strategy builds the value
        locator: File path, or fully-qualified class name for FACTORY_CLASS
    """

    kind: SourceKind
    locator: str


@runtime_checkable
class FeatureModelFactory(Protocol):
    """User-supplied code that builds a feature model programmatically."""

    def create_feature_model(self) -> FeatureModel: ...


def check_file_exists(path: str) -> None:
    """
    Raise MissingFileError unless `path` names an existing regular file.

    Only stats the path; nothing is read.
    """
    if not os.path.isfile(path):
        raise MissingFileError(path)


def load_dimacs(path: str) -> FeatureModel:
    check_file_exists(path)
    logger.debug("Loading DIMACS feature model from %s", path)
    return parse_dimacs_file(path)


def load_expression(path: str) -> Expression:
    check_file_exists(path)
    logger.debug("Loading feature expression from %s", path)
    return parse_expression_file(path)


def _resolve_class(name: str) -> type:
    """Resolve `package.module.Class` or `package.module:Class`."""
    if ":" in name:
        module_name, _, attr_path = name.partition(":")
    else:
        module_name, _, attr_path = name.rpartition(".")
    if not module_name or not attr_path:
        raise ValueError(f"not a fully-qualified class name: '{name}'")

    obj = importlib.import_module(module_name)
    for attr in attr_path.split("."):
        obj = getattr(obj, attr)
    if not isinstance(obj, type):
        raise TypeError(f"'{name}' is not a class")
    return obj


def load_factory(class_name: str) -> FeatureModel:
    """
    Build a model through a user-supplied factory class.

    The class is resolved by name, instantiated without arguments and asked
    for its model via create_feature_model(). Any failure along the way is
    reported as a single FactoryResolutionError carrying the cause.
    """
    logger.debug("Instantiating feature model factory %s", class_name)
    try:
        factory_class = _resolve_class(class_name)
        factory = factory_class()
        if not isinstance(factory, FeatureModelFactory):
            raise TypeError(f"{class_name} does not define create_feature_model()")
        model = factory.create_feature_model()
    except Exception as e:
        raise FactoryResolutionError(class_name, str(e) or type(e).__name__) from e

    if not isinstance(model, FeatureModel):
        raise FactoryResolutionError(
            class_name, f"create_feature_model() returned {type(model).__name__}, not a FeatureModel"
        )
    return model


def load_source(descriptor: SourceDescriptor) -> Union[Expression, FeatureModel]:
    """
    Materialize one source.

    Returns:
        Expression for FEXPR sources, FeatureModel for all others
    """
    if descriptor.kind is SourceKind.FEXPR:
        return load_expression(descriptor.locator)
    if descriptor.kind in (SourceKind.DIMACS, SourceKind.TYPE_SYSTEM_DIMACS):
        return load_dimacs(descriptor.locator)
    if descriptor.kind is SourceKind.FACTORY_CLASS:
        return load_factory(descriptor.locator)
    raise ValueError(f"Unsupported source kind: {descriptor.kind}")
