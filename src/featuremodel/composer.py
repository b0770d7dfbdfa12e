"""
Model Composer and Resolution Accessor.

FeatureModelOptions owns the two model slots:
    - general:      used by every analysis
    - type system:  used by type-system checks, falls back to general

Sources are applied in command-line order. Whole-model sources (DIMACS,
factory class) may fill the general slot only once; FExpr sources compose
into it by conjunction. After freeze() the slots are read-only.
"""

import logging
from typing import Iterable, Optional

from .errors import ConfigurationError, DuplicateModelError
from .loader import SourceDescriptor, SourceKind, load_source
from .model import FeatureModel, UNIVERSAL_MODEL

logger = logging.getLogger(__name__)


class FeatureModelOptions:
    """
    Configuration record holding the general and type-system feature models.

    Args:
        guard_type_system: When True (the default) a second type-system
            source is rejected like a second whole general model. When False
            a later type-system source replaces the earlier one.
    """

    def __init__(self, guard_type_system: bool = True):
        self.guard_type_system = guard_type_system
        self._general: Optional[FeatureModel] = None
        self._type_system: Optional[FeatureModel] = None
        self._frozen = False

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    @property
    def feature_model(self) -> FeatureModel:
        """The general model, or UNIVERSAL_MODEL when none was configured."""
        if self._general is None:
            return UNIVERSAL_MODEL
        return self._general

    @property
    def type_system_feature_model(self) -> FeatureModel:
        """The type-system model, falling back to the general model."""
        if self._type_system is not None:
            return self._type_system
        return self.feature_model

    @property
    def has_feature_model(self) -> bool:
        return self._general is not None

    @property
    def has_type_system_feature_model(self) -> bool:
        return self._type_system is not None

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def _check_mutable(self) -> None:
        if self._frozen:
            raise ConfigurationError("feature model configuration is frozen")

    def apply(self, descriptor: SourceDescriptor) -> None:
        """
        Load one source and merge it into the slots.

        Raises:
            DuplicateModelError: whole-model source while the general slot
                (or, when guarded, the type-system slot) is occupied
            ConfigurationError: any loading failure

        The slots are unchanged when an error is raised.
        """
        self._check_mutable()
        kind = descriptor.kind

        if kind.is_whole_model and self._general is not None:
            raise DuplicateModelError(
                f"cannot load feature model from {descriptor.locator}. feature model already exists.",
                locator=descriptor.locator,
            )
        if kind is SourceKind.TYPE_SYSTEM_DIMACS and self._type_system is not None and self.guard_type_system:
            raise DuplicateModelError(
                f"cannot load type-system feature model from {descriptor.locator}. "
                f"type-system feature model already exists.",
                locator=descriptor.locator,
            )

        loaded = load_source(descriptor)

        if kind is SourceKind.FEXPR:
            if self._general is None:
                self._general = FeatureModel.create(loaded, source=descriptor.locator)
                logger.info("Feature model created from %s", descriptor.locator)
            else:
                self._general = self._general.and_(loaded)
                logger.info("Feature model conjoined with %s", descriptor.locator)
        elif kind is SourceKind.TYPE_SYSTEM_DIMACS:
            if self._type_system is not None:
                logger.warning("Replacing type-system feature model with %s", descriptor.locator)
            self._type_system = loaded
            logger.info("Type-system feature model loaded from %s", descriptor.locator)
        else:
            self._general = loaded
            logger.info("Feature model loaded from %s", descriptor.locator)

    def apply_all(self, descriptors: Iterable[SourceDescriptor]) -> None:
        for descriptor in descriptors:
            self.apply(descriptor)

    def set_feature_model(self, model: FeatureModel) -> None:
        """Install a precomputed general model. Programmatic callers are trusted: no duplicate guard."""
        self._check_mutable()
        self._general = model

    def set_type_system_feature_model(self, model: FeatureModel) -> None:
        self._check_mutable()
        self._type_system = model

    def freeze(self) -> "FeatureModelOptions":
        """End the configuration pass. Returns self for chaining."""
        self._frozen = True
        return self
