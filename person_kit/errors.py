from __future__ import annotations


class PersonKitError(Exception):
    """Base class for errors raised by person_kit."""


class InvalidArgument(PersonKitError, ValueError):
    """An input (usually the image) is missing, empty or has the wrong layout."""


class UnavailableResource(PersonKitError, RuntimeError):
    """The inference engine (or something it needs) is not ready or already released."""


class MalformedModelOutput(PersonKitError, ValueError):
    """A model output tensor has an unexpected rank, shape or element type."""
