"""
Apparent Speech-to-Noise Ratio
==============================

Author:
    Stefano Giacomelli - Ph.D. candidate @ DISIM dpt. - University of L'Aquila

License:
    GNU General Public License v3.0 or later (GPLv3+)

This module derives the apparent speech-to-noise ratio of each third-octave
band from the Modulation Transfer Function for Intensity (MTFI) measured at
the eardrum, following ANSI S3.5-1997 Sections 5.2.3.5 and 5.2.3.6.

References
----------
.. [1] ANSI S3.5-1997, "Methods for Calculation of the Speech Intelligibility
       Index," American National Standards Institute, 1997.

.. [2] T. Houtgast and H. J. M. Steeneken, "A review of the MTF concept in room
       acoustics and its use for estimating speech intelligibility in
       auditoria," *J. Acoust. Soc. Am.*, vol. 77, no. 3, pp. 1069-1077, 1985.
"""

import warnings
from typing import Any, Dict, Optional, Tuple

import torch
import torch.nn as nn

from .errors import DimensionError
from .parameters import NUM_BANDS, NUM_MODULATION_FREQUENCIES


class ApparentSNR(nn.Module):
    r"""
    Apparent speech-to-noise ratio from the MTFI.

    Algorithm Overview
    ------------------
    1. **Per-cell ratio** (Eq. 22), for band :math:`i` and modulation frequency :math:`j`:

       .. math::
           R_{ij} = 10 \log_{10} \frac{m_{ij} + \epsilon}{1 - m_{ij} + \epsilon}

       :math:`\epsilon` only keeps the ratio finite at :math:`m = 0` and :math:`m = 1`.

    2. **Limiting**: :math:`R_{ij}` is clipped to :math:`[-15, +15]` dB.

    3. **Averaging** across the 9 modulation frequencies (Section 5.2.3.6):

       .. math::
           R_i = \frac{1}{9} \sum_j R_{ij}

    Parameters
    ----------
    eps : float, optional
        Offset added to numerator and denominator. ``None`` uses the machine
        epsilon of the input dtype (2.22e-16 for float64). Default: ``None``.

    snr_range : tuple of float, optional
        Closed clipping range in dB. Default: ``(-15.0, 15.0)``.

    Shape
    -----
    - Input: :math:`(..., 18, 9)`
    - Output: :math:`(..., 18)` for :meth:`forward`, :math:`(..., 18, 9)` for :meth:`snr_cells`

    Examples
    --------
    >>> snr = ApparentSNR()
    >>> snr(torch.full((18, 9), 0.5, dtype=torch.float64))[:3]
    tensor([0., 0., 0.], dtype=torch.float64)
    """

    def __init__(self,
                 eps: Optional[float] = None,
                 snr_range: Tuple[float, float] = (-15.0, 15.0)):
        super().__init__()

        if snr_range[0] > snr_range[1]:
            raise ValueError(f"snr_range must be (low, high) with low <= high, got {snr_range}")

        self.eps = eps
        self.snr_min = float(snr_range[0])
        self.snr_max = float(snr_range[1])

    def snr_cells(self, mtfi: torch.Tensor) -> torch.Tensor:
        """
        Clipped apparent SNR per band and modulation frequency.

        Parameters
        ----------
        mtfi : torch.Tensor
            MTFI of shape ``(..., 18, 9)``.

        Returns
        -------
        torch.Tensor
            SNR in dB, same shape as ``mtfi``.
        """
        if mtfi.ndim < 2 or tuple(mtfi.shape[-2:]) != (NUM_BANDS, NUM_MODULATION_FREQUENCIES):
            raise DimensionError('M', f"expected trailing shape ({NUM_BANDS}, {NUM_MODULATION_FREQUENCIES}), "
                                      f"got {tuple(mtfi.shape)}")
        if not mtfi.is_floating_point():
            mtfi = mtfi.to(torch.get_default_dtype())

        if ((mtfi < 0) | (mtfi > 1)).any():
            warnings.warn("MTFI values outside [0, 1] found, apparent SNR may be undefined",
                          RuntimeWarning, stacklevel=2)

        eps = torch.finfo(mtfi.dtype).eps if self.eps is None else self.eps
        snr = 10.0 * torch.log10((mtfi + eps) / (1.0 - mtfi + eps))

        return snr.clamp(min=self.snr_min, max=self.snr_max)

    def forward(self, mtfi: torch.Tensor) -> torch.Tensor:
        """Apparent SNR per band in dB, shape ``(..., 18)``."""
        return self.snr_cells(mtfi).mean(dim=-1)

    def get_parameters(self) -> Dict[str, Any]:
        return {'eps': self.eps,
                'snr_range': (self.snr_min, self.snr_max)}

    def extra_repr(self) -> str:
        return f"eps={self.eps}, snr_range=({self.snr_min}, {self.snr_max})"
