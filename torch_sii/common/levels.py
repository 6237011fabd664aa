"""
Speech, Noise & Threshold Levels
================================

Author:
    Stefano Giacomelli - Ph.D. candidate @ DISIM dpt. - University of L'Aquila

License:
    GNU General Public License v3.0 or later (GPLv3+)

This module implements the level stages of ANSI S3.5-1997 Section 5.3 that
operate on per-band vectors:

1. **SpeechNoiseDecomposition**: splits the Combined Speech and Noise Spectrum
   Level into apparent speech and apparent noise spectra (Eqs. 25 and 26)
2. **BinauralThresholdCorrection**: binaural advantage on the hearing
   threshold (Section 5.1.5)

References
----------
.. [1] ANSI S3.5-1997, "Methods for Calculation of the Speech Intelligibility
       Index," American National Standards Institute, 1997.
"""

from typing import Any, Dict, Tuple, Union

import torch
import torch.nn as nn

from .errors import DimensionError, InvalidListeningModeError
from .parameters import ListeningMode

# Binaural threshold advantage in dB (Section 5.1.5)
BINAURAL_ADVANTAGE_DB = 1.7

# ---------------------------------------------- Decomposition -----------------------------------------------

class SpeechNoiseDecomposition(nn.Module):
    r"""
    Apparent speech and noise spectra from the combined level and the apparent SNR.

    For each band, given the combined level :math:`P` and the apparent
    speech-to-noise ratio :math:`R` (both dB):

    .. math::
        E' = R + 10 \log_{10} \frac{10^{P/10}}{1 + 10^{R/10}}, \qquad N' = E' - R

    so that the intensities of :math:`E'` and :math:`N'` add up to :math:`P`
    and their difference equals :math:`R`.

    Shape
    -----
    - Input: ``csnsl`` :math:`(..., 18)`, ``snr`` broadcastable to it
    - Output: two tensors of shape :math:`(..., 18)`

    Examples
    --------
    >>> dec = SpeechNoiseDecomposition()
    >>> speech, noise = dec(torch.tensor([50.0]), torch.tensor([0.0]))
    >>> round(speech.item(), 2), round(noise.item(), 2)
    (46.99, 46.99)
    """

    def forward(self, csnsl: torch.Tensor, snr: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
        """
        Parameters
        ----------
        csnsl : torch.Tensor
            Combined Speech and Noise Spectrum Level in dB.
        snr : torch.Tensor
            Apparent speech-to-noise ratio in dB.

        Returns
        -------
        speech : torch.Tensor
            Apparent speech spectrum level in dB (Eq. 25).
        noise : torch.Tensor
            Apparent noise spectrum level in dB (Eq. 26).
        """
        speech = snr + 10.0 * torch.log10(10.0 ** (csnsl / 10.0) / (1.0 + 10.0 ** (snr / 10.0)))
        noise = speech - snr
        return speech, noise

# ----------------------------------------------- Threshold --------------------------------------------------

class BinauralThresholdCorrection(nn.Module):
    """
    Lower the hearing threshold by the binaural advantage when listening binaurally.

    Monaural listening leaves the threshold unchanged; binaural listening
    subtracts ``binaural_advantage`` dB from every band.

    Parameters
    ----------
    binaural_advantage : float, optional
        Threshold reduction in dB. Default: 1.7 (Section 5.1.5).
    """

    def __init__(self, binaural_advantage: float = BINAURAL_ADVANTAGE_DB):
        super().__init__()
        self.binaural_advantage = float(binaural_advantage)

    def forward(self,
                threshold: torch.Tensor,
                mode: Union[ListeningMode, int, str, torch.Tensor] = ListeningMode.MONAURAL) -> torch.Tensor:
        """
        Parameters
        ----------
        threshold : torch.Tensor
            Hearing threshold level in dB HL, shape ``(..., 18)``.
        mode : ListeningMode or int or str or torch.Tensor
            A single listening mode, or a tensor of modes with shape
            ``threshold.shape[:-1]`` (one per batch item). Boolean
            tensors are rejected.

        Returns
        -------
        torch.Tensor
            Equivalent hearing threshold level, a new tensor shaped like ``threshold``.
        """
        if isinstance(mode, torch.Tensor) and mode.numel() > 1:
            if mode.dtype == torch.bool:
                raise InvalidListeningModeError(mode)
            if mode.shape != threshold.shape[:-1]:
                raise DimensionError('B', f"expected one listening mode per batch item "
                                          f"{tuple(threshold.shape[:-1])}, got shape {tuple(mode.shape)}")
            mode = mode.to(device=threshold.device)
            invalid = (mode != int(ListeningMode.MONAURAL)) & (mode != int(ListeningMode.BINAURAL))
            if invalid.any():
                raise InvalidListeningModeError(mode[invalid][0].item())
            binaural = (mode == int(ListeningMode.BINAURAL)).to(threshold.dtype).unsqueeze(-1)
            return threshold - self.binaural_advantage * binaural

        if ListeningMode.coerce(mode) == ListeningMode.BINAURAL:
            return threshold - self.binaural_advantage
        return threshold.clone()

    def get_parameters(self) -> Dict[str, Any]:
        return {'binaural_advantage': self.binaural_advantage}

    def extra_repr(self) -> str:
        return f"binaural_advantage={self.binaural_advantage}"
