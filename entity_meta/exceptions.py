"""
Exceptions raised while deriving entity models.

Every problem detected during model construction is a configuration error:
it is raised synchronously from ``build()`` and is not retryable. The
exceptions carry the entity reference and, where relevant, the offending
attribute path so that startup failures point straight at the declaration
that needs fixing.
"""

from typing import Optional


class EntityModelError(Exception):
    """Base exception for entity model errors."""

    def __init__(self, message: str, reference: Optional[str] = None):
        self.reference = reference
        super().__init__(message)


class ConfigurationError(EntityModelError):
    """Raised when a domain class carries an invalid metadata configuration."""

    def __init__(
        self,
        message: str,
        reference: Optional[str] = None,
        attribute_path: Optional[str] = None,
    ):
        self.attribute_path = attribute_path
        super().__init__(message, reference)


class InvalidCombinationError(ConfigurationError):
    """Raised when a setting is incompatible with the attribute it is applied to."""

    def __init__(
        self,
        message: str,
        reference: Optional[str] = None,
        attribute_path: Optional[str] = None,
        setting: Optional[str] = None,
    ):
        self.setting = setting
        super().__init__(message, reference, attribute_path)


class UnresolvableReferenceError(ConfigurationError):
    """Raised when a configuration names an attribute that does not exist."""

    def __init__(
        self,
        message: str,
        reference: Optional[str] = None,
        attribute_name: Optional[str] = None,
    ):
        self.attribute_name = attribute_name
        super().__init__(message, reference, attribute_name)


class IllegalStructureError(ConfigurationError):
    """Raised when the shape of a domain class cannot be modelled."""


class ModelNotProvidedError(EntityModelError):
    """Raised when no factory is able to provide a requested reference."""
