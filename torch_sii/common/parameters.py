"""
Eardrum Measurement Parameters
==============================

Author:
    Stefano Giacomelli - Ph.D. candidate @ DISIM dpt. - University of L'Aquila

License:
    GNU General Public License v3.0 or later (GPLv3+)

Structured, validated input for the ANSI S3.5-1997 Section 5.3 procedure
(equivalent speech, noise and threshold spectrum levels from MTFI/CSNSL
measurements at the eardrum of the listener).

A measurement is made of four named parameters:

- ``P``: Combined Speech and Noise Spectrum Level in dB (Section 3.17), 18 bands
- ``M``: Modulation Transfer Function for Intensity (Section 3.31), 18 x 9
- ``T``: Hearing Threshold Level in dB HL (Section 3.22), 18 bands, optional
- ``B``: listening mode, 1 = monaural, 2 = binaural, optional

:class:`EardrumMeasurement` validates shapes at construction time, so a
measurement that exists is always well formed. The identifier/value calling
convention (``'P', p, 'M', m, 'b', 2``) is kept through
:meth:`EardrumMeasurement.from_identifiers`.

References
----------
.. [1] ANSI S3.5-1997, "Methods for Calculation of the Speech Intelligibility
       Index," American National Standards Institute, 1997.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional

import numpy as np
import torch

from .errors import (DimensionError,
                     InvalidListeningModeError,
                     MissingRequiredParameterError,
                     ParameterPairingError,
                     UnknownIdentifierError)

# Third-octave bands 160 Hz ... 8000 Hz
NUM_BANDS = 18

# Modulation frequencies of the MTFI measurement (Section 5.2.3.3)
NUM_MODULATION_FREQUENCIES = 9

IDENTIFIERS = ('P', 'M', 'T', 'B')
REQUIRED_IDENTIFIERS = ('P', 'M')


class ListeningMode(IntEnum):
    """Monaural or binaural listening (Section 5.1.5)."""

    MONAURAL = 1
    BINAURAL = 2

    @classmethod
    def coerce(cls, value: Any) -> 'ListeningMode':
        """
        Convert ``value`` to a listening mode.

        Accepts members, the integers 1 and 2 (also as 0-d tensors or numpy
        scalars) and the member names, case-insensitive.

        Raises
        ------
        InvalidListeningModeError
            If ``value`` is none of the above.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise InvalidListeningModeError(value) from None
        if isinstance(value, torch.Tensor):
            if value.numel() != 1:
                raise InvalidListeningModeError(value)
            value = value.item()
        elif isinstance(value, np.generic):
            value = value.item()
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidListeningModeError(value)
        try:
            return cls(value)
        except ValueError:
            raise InvalidListeningModeError(value) from None


def _as_tensor(parameter: str, value: Any, dtype: torch.dtype) -> torch.Tensor:
    if isinstance(value, (str, bytes)):
        raise DimensionError(parameter, f"expected numeric values, got {type(value).__name__}")
    try:
        return torch.as_tensor(value, dtype=dtype)
    except (TypeError, ValueError, RuntimeError) as e:
        raise DimensionError(parameter, f"expected numeric values ({e})") from e


def as_band_vector(parameter: str, value: Any, dtype: torch.dtype = torch.float64) -> torch.Tensor:
    """
    Validate a per-band vector and return it as a flat ``(18,)`` tensor
    that shares no memory with ``value``.

    Row ``(1, 18)``, column ``(18, 1)`` and flat ``(18,)`` layouts are accepted.
    Any other element count or a matrix layout is rejected, never truncated
    or padded.
    """
    vector = _as_tensor(parameter, value, dtype)
    non_singleton = [n for n in vector.shape if n != 1]
    if vector.numel() != NUM_BANDS or len(non_singleton) > 1:
        raise DimensionError(parameter, f"expected a vector with {NUM_BANDS} elements, "
                                        f"got shape {tuple(vector.shape)}")
    return vector.reshape(NUM_BANDS).clone()


def as_mtfi_matrix(value: Any, dtype: torch.dtype = torch.float64) -> torch.Tensor:
    """Validate the MTFI and return it as a new ``(18, 9)`` tensor."""
    matrix = _as_tensor('M', value, dtype)
    if tuple(matrix.shape) != (NUM_BANDS, NUM_MODULATION_FREQUENCIES):
        raise DimensionError('M', f"expected a {NUM_BANDS}x{NUM_MODULATION_FREQUENCIES} matrix, "
                                  f"got shape {tuple(matrix.shape)}")
    return matrix.clone()


def parse_identifier_pairs(*args: Any, **named: Any) -> Dict[str, Any]:
    """
    Collect identifier/value pairs into a dict keyed by upper-case identifier.

    Parameters
    ----------
    *args
        Alternating identifiers and values, in any pair order, e.g.
        ``('P', p, 'M', m, 'b', 2)``.
    **named
        The same identifiers given as keywords, e.g. ``P=p, M=m, b=2``.

    Returns
    -------
    dict
        ``{'P': ..., 'M': ..., 'T': ..., 'B': ...}`` restricted to what was supplied.

    Raises
    ------
    ParameterPairingError
        If ``args`` has odd length, an identifier slot is not a string, or an
        identifier is given twice.
    UnknownIdentifierError
        If an identifier is not one of P, M, T, B (case-insensitive).
    MissingRequiredParameterError
        If P or M is absent.
    """
    if len(args) % 2 != 0:
        raise ParameterPairingError(f"Every input must be preceded by an identifying string, "
                                    f"got {len(args)} positional arguments")

    pairs = list(zip(args[0::2], args[1::2])) + list(named.items())

    params = {}
    for identifier, value in pairs:
        if not isinstance(identifier, str):
            raise ParameterPairingError(f"Expected an identifying string, got {type(identifier).__name__}")
        key = identifier.upper()
        if key not in IDENTIFIERS:
            raise UnknownIdentifierError(identifier)
        if key in params:
            raise ParameterPairingError(f"Identifier '{key}' was supplied more than once")
        params[key] = value

    for key in REQUIRED_IDENTIFIERS:
        if params.get(key) is None:
            raise MissingRequiredParameterError(key)

    return params


@dataclass(frozen=True, eq=False)
class EardrumMeasurement:
    """
    Validated eardrum measurement for one listener.

    Parameters
    ----------
    P : array_like
        Combined Speech and Noise Spectrum Level in dB, 18 values (bands 1-18).
    M : array_like
        Modulation Transfer Function for Intensity, shape ``(18, 9)``.
    T : array_like, optional
        Hearing Threshold Level in dB HL, 18 values. ``None`` means no
        threshold was measured and 0 dB HL is assumed in all bands.
    B : ListeningMode or int or str, optional
        Listening mode. Default: monaural.
    dtype : torch.dtype, optional
        Working dtype of the stored tensors. Default: ``torch.float64``.

    Attributes
    ----------
    P, T : torch.Tensor
        Shape ``(18,)``.
    M : torch.Tensor
        Shape ``(18, 9)``.
    B : ListeningMode

    Examples
    --------
    >>> m = EardrumMeasurement(P=[50.0] * 18, M=torch.full((18, 9), 0.5))
    >>> m.T.shape, m.B
    (torch.Size([18]), <ListeningMode.MONAURAL: 1>)
    >>> m = EardrumMeasurement.from_identifiers('P', [50.0] * 18, 'M', torch.full((18, 9), 0.5), 'b', 2)
    >>> m.B
    <ListeningMode.BINAURAL: 2>
    """

    P: Any
    M: Any
    T: Optional[Any] = None
    B: Any = ListeningMode.MONAURAL
    dtype: torch.dtype = torch.float64

    def __post_init__(self):
        if self.P is None:
            raise MissingRequiredParameterError('P')
        if self.M is None:
            raise MissingRequiredParameterError('M')

        P = as_band_vector('P', self.P, self.dtype)
        M = as_mtfi_matrix(self.M, self.dtype)
        if self.T is None:
            T = torch.zeros(NUM_BANDS, dtype=self.dtype)
        else:
            T = as_band_vector('T', self.T, self.dtype)
        B = ListeningMode.coerce(self.B)

        object.__setattr__(self, 'P', P)
        object.__setattr__(self, 'M', M)
        object.__setattr__(self, 'T', T)
        object.__setattr__(self, 'B', B)

    @classmethod
    def from_identifiers(cls, *args: Any, dtype: torch.dtype = torch.float64, **named: Any) -> 'EardrumMeasurement':
        """Build a measurement from identifier/value pairs, see :func:`parse_identifier_pairs`."""
        params = parse_identifier_pairs(*args, **named)
        if 'B' in params and params['B'] is None:
            del params['B']
        return cls(dtype=dtype, **params)

    @property
    def binaural(self) -> bool:
        return self.B == ListeningMode.BINAURAL
