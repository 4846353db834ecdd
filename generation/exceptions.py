"""
Typed failures raised by the document generation core.

Derivation and validation errors carry messages meant for the person who
filled the form. Merge and injection errors describe a template/schema
mismatch and are meant for server logs; the HTTP layer only reports a
generic failure for them.
"""
from typing import Iterable, List


class GenerationError(Exception):
    """Base class for every error raised by the generation core."""


# --- Derivation -------------------------------------------------------------

class DerivationError(GenerationError):
    """A raw form value could not be turned into a template value."""

    def __init__(self, message: str, value=None):
        super().__init__(message)
        self.value = value


class UnsupportedCountry(DerivationError):
    pass


class InvalidTimeFormat(DerivationError):
    pass


class InvalidDate(DerivationError):
    pass


class InvalidDistance(DerivationError):
    pass


class InvalidMeetingType(DerivationError):
    pass


# --- Validation -------------------------------------------------------------

class MissingVariables(GenerationError):
    def __init__(self, missing: Iterable[str]):
        self.missing: List[str] = list(missing)
        super().__init__(f"Missing required variables: {', '.join(self.missing)}")


class UnknownAction(GenerationError):
    def __init__(self, action_slug: str):
        self.action_slug = action_slug
        super().__init__(f"Unknown action: {action_slug}")


# --- Merge ------------------------------------------------------------------

class TemplateMergeError(GenerationError):
    """The template could not be merged with the supplied data."""


class InvalidTemplate(TemplateMergeError):
    pass


class UnresolvedPlaceholder(TemplateMergeError):
    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"Unresolved placeholder: {{{{{tag}}}}}")


class UnresolvedImagePlaceholder(TemplateMergeError):
    def __init__(self, tag: str, available: Iterable[str]):
        self.tag = tag
        self.available: List[str] = sorted(available)
        listed = ", ".join(self.available) or "(none)"
        super().__init__(
            f"Unresolved image placeholder: {{%{tag}}}. Available image keys: {listed}"
        )


class ImageEmbedError(TemplateMergeError):
    def __init__(self, tag: str, reason: str):
        self.tag = tag
        super().__init__(f"Image for placeholder {{%{tag}}} could not be embedded: {reason}")


# --- Preview ----------------------------------------------------------------

class InvalidDocumentStructure(GenerationError):
    pass
