"""
Input Validation Errors
=======================

Author:
    Stefano Giacomelli - Ph.D. candidate @ DISIM dpt. - University of L'Aquila

License:
    GNU General Public License v3.0 or later (GPLv3+)

Exception hierarchy raised while validating eardrum measurements. Every error
derives from :class:`SpectrumLevelError` (itself a ``ValueError``), so callers
may catch the whole family or react to each kind separately.
"""


class SpectrumLevelError(ValueError):
    """Base class for all measurement validation errors."""


class ParameterPairingError(SpectrumLevelError):
    """Raised when identifiers and values are not given as consecutive pairs."""


class UnknownIdentifierError(SpectrumLevelError):
    """Raised when an identifier other than 'P', 'M', 'T' or 'B' is supplied."""

    def __init__(self, identifier):
        self.identifier = identifier
        super().__init__(f"Only 'P', 'M', 'T', and 'B' are valid identifiers, got {identifier!r}")


class MissingRequiredParameterError(SpectrumLevelError):
    """Raised when 'P' or 'M' is not supplied."""

    def __init__(self, parameter: str):
        self.parameter = parameter
        super().__init__(f"Required parameter '{parameter}' was not supplied")


class DimensionError(SpectrumLevelError):
    """
    Raised when a band vector or the MTFI matrix has the wrong shape.

    Attributes
    ----------
    parameter : str
        Name of the offending parameter (``'P'``, ``'M'`` or ``'T'``).
    """

    def __init__(self, parameter: str, message: str):
        self.parameter = parameter
        super().__init__(f"{parameter}: {message}")


class InvalidListeningModeError(SpectrumLevelError):
    """Raised when the listening mode is neither monaural (1) nor binaural (2)."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid listening mode {value!r}: use 1 (monaural) or 2 (binaural)")
