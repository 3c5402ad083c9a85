class DocProfileError(Exception):
    """Base class for every error raised by docprofile."""


class ConfigurationError(DocProfileError):
    """Bad arguments, too few processes, or bad settings. Raised before distribution starts."""


class DictionaryReadError(DocProfileError):
    """The dictionary file could not be read."""


class DocumentReadError(DocProfileError):
    """A document could not be read. Fatal for the whole run."""

    def __init__(self, path, reason):
        super().__init__(f"Cannot read document '{path}': {reason}")
        self.path = path


class ProtocolError(DocProfileError):
    """A peer sent a message the protocol does not allow at that point."""
