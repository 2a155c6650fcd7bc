"""Exception taxonomy for the section engine.

Registry and factory errors are caught by the renderer and turned into
fallback states; they never escape a page render.
"""

from typing import Optional


class SectionEngineError(Exception):
    """Base class for all section engine errors."""
    pass


class ValidationError(SectionEngineError):
    """Raised when a descriptor or editor schema is malformed.

    Caller-correctable; never retried automatically.
    """

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.errors = list(errors or [])


class UnknownTypeError(SectionEngineError):
    """Raised when a section type id is not in the registry."""

    def __init__(self, type_id: str):
        super().__init__(f"Section '{type_id}' not found in registry")
        self.type_id = type_id


class UnknownVariantError(SectionEngineError):
    """Raised when a variant is not a recognized member or not registered."""

    def __init__(self, variant: str):
        super().__init__(f"Unknown hero variant: '{variant}'")
        self.variant = variant


class InactiveVariantError(SectionEngineError):
    """Raised when a variant exists but has been disabled."""

    def __init__(self, variant: str):
        super().__init__(f"Hero variant '{variant}' is not available or has been disabled")
        self.variant = variant


class LoadFailureError(SectionEngineError):
    """Raised when an implementation fails to load or times out.

    Failures are not cached; a later call retries the load.
    """

    def __init__(self, key: str, reason: str):
        super().__init__(f"Failed to load {key}: {reason}")
        self.key = key
        self.reason = reason


class MigrationValidationError(SectionEngineError):
    """Raised when migrated properties violate the target's required fields."""

    def __init__(self, type_id: str, errors: list[str]):
        super().__init__(f"Migrated properties for '{type_id}' are invalid: {'; '.join(errors)}")
        self.type_id = type_id
        self.errors = list(errors)


class SectionInstanceNotFoundError(SectionEngineError):
    """Raised when a placed section instance does not exist."""

    def __init__(self, section_id: str):
        super().__init__(f"Section instance '{section_id}' not found")
        self.section_id = section_id
