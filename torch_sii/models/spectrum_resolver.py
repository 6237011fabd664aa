"""
SpectrumResolver: Equivalent Spectrum Levels from Eardrum Measurements
======================================================================

Author:
    Stefano Giacomelli - Ph.D. candidate @ DISIM dpt. - University of L'Aquila

License:
    GNU General Public License v3.0 or later (GPLv3+)

This module implements Section 5.3 of ANSI S3.5-1997: determination of the
equivalent speech, noise and threshold spectrum levels with the method based
on MTFI/CSNSL measurements at the eardrum of the listener. The three output
vectors are the input of a Speech Intelligibility Index computation.

Pipeline:

1. Apparent speech-to-noise ratio from the MTFI (Eq. 22, Sections 5.2.3.5-5.2.3.6)
2. Apparent speech and noise spectra from the CSNSL (Eqs. 25-26)
3. Binaural correction of the hearing threshold (Section 5.1.5)
4. Eardrum to free-field referencing with Table 3 (Eqs. 27-28)

References
----------
.. [1] ANSI S3.5-1997, "Methods for Calculation of the Speech Intelligibility
       Index," American National Standards Institute, 1997.

.. [2] H. Muesch and P. Zurek, "SII: Speech Intelligibility Index," reference
       MATLAB implementation of ANSI S3.5-1997, 2005.
"""

import logging
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import torch
import torch.nn as nn

from ..common.ears import EardrumToFreeField
from ..common.errors import DimensionError, InvalidListeningModeError
from ..common.levels import BINAURAL_ADVANTAGE_DB, BinauralThresholdCorrection, SpeechNoiseDecomposition
from ..common.modulation import ApparentSNR
from ..common.parameters import (NUM_BANDS,
                                 NUM_MODULATION_FREQUENCIES,
                                 EardrumMeasurement,
                                 ListeningMode,
                                 as_band_vector)

logger = logging.getLogger(__name__)

Levels = Tuple[torch.Tensor, torch.Tensor, torch.Tensor]


class SpectrumResolver(nn.Module):
    r"""
    Equivalent speech, noise and threshold spectrum levels (ANSI S3.5-1997, 5.3).

    Algorithm Overview
    ------------------
    **Stage 1: Apparent SNR** (:class:`~torch_sii.common.modulation.ApparentSNR`)

    .. math::
        R_i = \frac{1}{9} \sum_{j=1}^{9} \min\left(15, \max\left(-15,
              10 \log_{10} \frac{m_{ij} + \epsilon}{1 - m_{ij} + \epsilon}\right)\right)

    **Stage 2: Apparent speech and noise** (:class:`~torch_sii.common.levels.SpeechNoiseDecomposition`)

    .. math::
        E'_i = R_i + 10 \log_{10} \frac{10^{P_i/10}}{1 + 10^{R_i/10}}, \qquad N'_i = E'_i - R_i

    **Stage 3: Threshold** (:class:`~torch_sii.common.levels.BinauralThresholdCorrection`)

    .. math::
        T'_i = T_i - 1.7 \text{ (binaural)}, \qquad T'_i = T_i \text{ (monaural)}

    **Stage 4: Free-field reference** (:class:`~torch_sii.common.ears.EardrumToFreeField`)

    .. math::
        E_i = E'_i - TF_i, \qquad N_i = N'_i - TF_i

    Parameters
    ----------
    eps : float, optional
        Offset of the SNR log-ratio. ``None`` uses the machine epsilon of
        ``dtype``. Default: ``None``.

    snr_range : tuple of float, optional
        Clipping range of the per-cell apparent SNR in dB. Default: ``(-15.0, 15.0)``.

    binaural_advantage : float, optional
        Threshold reduction for binaural listening in dB. Default: 1.7.

    return_stages : bool, optional
        If True, :meth:`forward` also returns a dict of intermediate results.
        Default: ``False``.

    dtype : torch.dtype, optional
        Working dtype. Inputs are cast to it. Default: ``torch.float64``.

    Shape
    -----
    - ``csnsl`` (P): :math:`(..., 18)`; unbatched also :math:`(1, 18)` or :math:`(18, 1)`
    - ``mtfi`` (M): :math:`(..., 18, 9)` with the same leading dimensions as P
    - ``threshold`` (T): :math:`(..., 18)` or ``None``
    - ``mode`` (B): a single mode, or one mode per batch item
    - Output: three tensors of shape :math:`(..., 18)`

    Notes
    -----
    The module keeps no state between calls: every output is computed from
    the inputs and the constant transfer-function table, so one instance may
    be shared by concurrent callers and batch items never interact.

    See Also
    --------
    resolve : Functional interface with identifier/value pairs.
    resolve_batch : Resolve a sequence of measurements in one pass.

    Examples
    --------
    >>> resolver = SpectrumResolver()
    >>> P = torch.full((18,), 50.0)
    >>> M = torch.full((18, 9), 0.5)
    >>> E, N, T = resolver(P, M)
    >>> E.shape, N.shape, T.shape
    (torch.Size([18]), torch.Size([18]), torch.Size([18]))
    >>> round(E[0].item(), 2)
    46.99

    Batch of two listeners, the second one listening binaurally:

    >>> E, N, T = resolver(P.expand(2, 18), M.expand(2, 18, 9), mode=[1, 2])
    >>> T[:, 0]
    tensor([ 0.0000, -1.7000], dtype=torch.float64)
    """

    def __init__(self,
                 eps: Optional[float] = None,
                 snr_range: Tuple[float, float] = (-15.0, 15.0),
                 binaural_advantage: float = BINAURAL_ADVANTAGE_DB,
                 return_stages: bool = False,
                 dtype: torch.dtype = torch.float64):
        super().__init__()

        self.return_stages = return_stages
        self.dtype = dtype

        # Stage 1: Apparent SNR
        self.apparent_snr = ApparentSNR(eps=eps, snr_range=snr_range)

        # Stage 2: Apparent speech and noise
        self.decomposition = SpeechNoiseDecomposition()

        # Stage 3: Threshold
        self.threshold_correction = BinauralThresholdCorrection(binaural_advantage=binaural_advantage)

        # Stage 4: Free-field reference
        self.eardrum_to_free_field = EardrumToFreeField(dtype=dtype)

    def _as_input(self, parameter: str, value: Any) -> torch.Tensor:
        device = self.eardrum_to_free_field.tf_gains.device
        try:
            return torch.as_tensor(value, dtype=self.dtype, device=device)
        except (TypeError, ValueError, RuntimeError) as e:
            raise DimensionError(parameter, f"expected numeric values ({e})") from e

    def _as_modes(self, mode: Any, batch_shape: torch.Size) -> Union[ListeningMode, torch.Tensor]:
        if isinstance(mode, (list, tuple)):
            mode = torch.tensor([int(ListeningMode.coerce(m)) for m in mode])
        if not isinstance(mode, torch.Tensor) or mode.numel() == 1:
            return ListeningMode.coerce(mode)

        if mode.dtype == torch.bool:
            raise InvalidListeningModeError(mode)
        valid = (mode == int(ListeningMode.MONAURAL)) | (mode == int(ListeningMode.BINAURAL))
        if not valid.all():
            raise InvalidListeningModeError(mode[~valid][0].item())
        if mode.shape != batch_shape:
            raise DimensionError('B', f"expected one listening mode per batch item {tuple(batch_shape)}, "
                                      f"got shape {tuple(mode.shape)}")
        return mode

    def forward(self,
                csnsl: torch.Tensor,
                mtfi: torch.Tensor,
                threshold: Optional[torch.Tensor] = None,
                mode: Any = ListeningMode.MONAURAL) -> Union[Levels, Tuple[Levels, Dict[str, torch.Tensor]]]:
        """
        Resolve equivalent spectrum levels.

        All inputs are validated before any numeric work.

        Parameters
        ----------
        csnsl : torch.Tensor
            Combined Speech and Noise Spectrum Level (P) in dB. Shape: (..., 18).
        mtfi : torch.Tensor
            Modulation Transfer Function for Intensity (M). Shape: (..., 18, 9).
        threshold : torch.Tensor, optional
            Hearing Threshold Level (T) in dB HL. Shape: (..., 18).
            ``None`` assumes 0 dB HL in every band.
        mode : ListeningMode or int or str or sequence or torch.Tensor, optional
            Listening mode (B), either one for all items or one per batch item.
            Default: monaural.

        Returns
        -------
        tuple or tuple of tuple and dict
            If return_stages=False:
                (E, N, T) where:
                - E: Equivalent Speech Spectrum Level in dB (Eq. 27)
                - N: Equivalent Noise Spectrum Level in dB (Eq. 28)
                - T: Equivalent Hearing Threshold Level in dB HL

            If return_stages=True:
                ((E, N, T), stages) where stages is a dict with:
                - 'snr_cells': Clipped apparent SNR per band and modulation frequency
                - 'apparent_snr': Apparent SNR per band
                - 'apparent_speech': Apparent speech spectrum level at the eardrum
                - 'apparent_noise': Apparent noise spectrum level at the eardrum

        Raises
        ------
        DimensionError
            If P, M, T or a per-item mode tensor has the wrong shape.
        InvalidListeningModeError
            If a listening mode is not monaural or binaural.
        """
        csnsl = self._as_input('P', csnsl)
        mtfi = self._as_input('M', mtfi)

        # Unbatched: P and T may be given as row, column or flat vectors
        if mtfi.ndim == 2:
            csnsl = as_band_vector('P', csnsl, self.dtype)
            if threshold is not None:
                threshold = as_band_vector('T', self._as_input('T', threshold), self.dtype)

        if csnsl.ndim < 1 or csnsl.shape[-1] != NUM_BANDS:
            raise DimensionError('P', f"expected trailing dimension {NUM_BANDS}, got shape {tuple(csnsl.shape)}")
        batch_shape = csnsl.shape[:-1]

        if mtfi.shape != batch_shape + (NUM_BANDS, NUM_MODULATION_FREQUENCIES):
            raise DimensionError('M', f"expected shape {tuple(batch_shape) + (NUM_BANDS, NUM_MODULATION_FREQUENCIES)}, "
                                      f"got {tuple(mtfi.shape)}")

        if threshold is None:
            threshold = torch.zeros_like(csnsl)
        else:
            threshold = self._as_input('T', threshold)
            if threshold.shape != csnsl.shape:
                raise DimensionError('T', f"expected shape {tuple(csnsl.shape)}, got {tuple(threshold.shape)}")

        mode = self._as_modes(mode, batch_shape)

        logger.debug("Resolving spectrum levels: batch_shape=%s, mode=%s", tuple(batch_shape),
                     mode.name if isinstance(mode, ListeningMode) else mode.tolist())

        # Stage 1: Apparent SNR
        snr_cells = self.apparent_snr.snr_cells(mtfi)      # (..., 18, 9)
        apparent_snr = snr_cells.mean(dim=-1)               # (..., 18)

        # Stage 2: Apparent speech and noise (Eqs. 25-26)
        apparent_speech, apparent_noise = self.decomposition(csnsl, apparent_snr)

        # Stage 3: Threshold (Section 5.1.5)
        equivalent_threshold = self.threshold_correction(threshold, mode)

        # Stage 4: Free-field reference (Eqs. 27-28)
        equivalent_speech = self.eardrum_to_free_field(apparent_speech)
        equivalent_noise = self.eardrum_to_free_field(apparent_noise)

        levels = (equivalent_speech, equivalent_noise, equivalent_threshold)

        if self.return_stages:
            stages = {'snr_cells': snr_cells,
                      'apparent_snr': apparent_snr,
                      'apparent_speech': apparent_speech,
                      'apparent_noise': apparent_noise}
            return levels, stages
        return levels

    def resolve(self, measurement: EardrumMeasurement) -> Union[Levels, Tuple[Levels, Dict[str, torch.Tensor]]]:
        """Resolve a single validated :class:`EardrumMeasurement`."""
        return self(measurement.P, measurement.M, measurement.T, measurement.B)

    def get_parameters(self) -> Dict[str, Any]:
        """
        Get all model parameters.

        Returns
        -------
        dict
            Dictionary with model parameters:
            - 'eps': SNR log-ratio offset (None = machine epsilon)
            - 'snr_range': Clipping range of the apparent SNR in dB
            - 'binaural_advantage': Binaural threshold reduction in dB
            - 'return_stages': Whether intermediate stages are returned
            - 'dtype': Working dtype
        """
        return {**self.apparent_snr.get_parameters(),
                **self.threshold_correction.get_parameters(),
                'return_stages': self.return_stages,
                'dtype': self.dtype}

    def extra_repr(self) -> str:
        return f"return_stages={self.return_stages}, dtype={self.dtype}"


def resolve(*args: Any, dtype: torch.dtype = torch.float64, **named: Any) -> Levels:
    """
    Equivalent speech, noise and threshold spectrum levels from identifier/value pairs.

    Parameters are passed as pairs of identifier and value, positionally or as
    keywords, in any order. Identifiers are case-insensitive:

    - ``'P'``: Combined Speech and Noise Spectrum Level in dB, 18 values (required)
    - ``'M'``: Modulation Transfer Function for Intensity, 18 x 9 (required)
    - ``'T'``: Hearing Threshold Level in dB HL, 18 values (default: 0 dB HL)
    - ``'b'``: 1 = monaural, 2 = binaural listening (default: monaural)

    Returns
    -------
    E, N, T : torch.Tensor
        Equivalent speech, noise and threshold spectrum levels, shape ``(18,)``.

    Raises
    ------
    ParameterPairingError, UnknownIdentifierError, MissingRequiredParameterError,
    DimensionError, InvalidListeningModeError

    Examples
    --------
    >>> P = [50.0] * 18
    >>> M = torch.full((18, 9), 0.5)
    >>> E, N, T = resolve('P', P, 'M', M, 'b', 2)
    >>> E, N, T = resolve(P=P, M=M, T=[10.0] * 18)
    """
    measurement = EardrumMeasurement.from_identifiers(*args, dtype=dtype, **named)
    return SpectrumResolver(dtype=dtype).resolve(measurement)


def resolve_batch(measurements: Sequence[EardrumMeasurement],
                  resolver: Optional[SpectrumResolver] = None) -> Union[Levels, Tuple[Levels, Dict[str, torch.Tensor]]]:
    """
    Resolve several measurements in one pass.

    Parameters
    ----------
    measurements : sequence of EardrumMeasurement
        Independent measurements, each with its own listening mode.
    resolver : SpectrumResolver, optional
        Resolver to use. Default: a new ``SpectrumResolver()``.

    Returns
    -------
    E, N, T : torch.Tensor
        Shape ``(len(measurements), 18)``, row ``k`` resolved from ``measurements[k]``.
    """
    if len(measurements) == 0:
        raise ValueError("resolve_batch requires at least one measurement")

    resolver = SpectrumResolver() if resolver is None else resolver

    csnsl = torch.stack([m.P.to(resolver.dtype) for m in measurements])
    mtfi = torch.stack([m.M.to(resolver.dtype) for m in measurements])
    threshold = torch.stack([m.T.to(resolver.dtype) for m in measurements])
    modes = torch.tensor([int(m.B) for m in measurements])

    logger.debug("Resolving batch of %d measurement(s)", len(measurements))

    return resolver(csnsl, mtfi, threshold, modes)
