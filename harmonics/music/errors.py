class HarmonicsError(Exception):
    """Base error for the note generator and its audio pipeline."""


class InvalidArgumentError(HarmonicsError, ValueError):
    """Raised for bad degrees, counts, durations, sample rates or unknown names."""


class PitchRangeError(HarmonicsError, ValueError):
    """Raised when a pitch would fall outside the MIDI range 0..127."""


class ResourceLoadError(HarmonicsError):
    """Raised when an instrument resource cannot be loaded."""


class ExportError(HarmonicsError):
    """Raised when a sample archive cannot be produced."""
