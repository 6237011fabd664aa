"""
Free-Field to Eardrum Transfer Function
=======================================

Author:
    Stefano Giacomelli - Ph.D. candidate @ DISIM dpt. - University of L'Aquila

License:
    GNU General Public License v3.0 or later (GPLv3+)

This module references spectrum levels measured at the eardrum back to the
free field (and vice versa) using the free-field to eardrum transfer function
tabulated at the 18 third-octave band centres between 160 Hz and 8000 Hz
(ANSI S3.5-1997, Table 3).

Unlike the sampled-signal ear filters of auditory front ends, no filter is
designed here: the levels are already band levels in dB, so referencing is a
per-band subtraction (Eqs. 27 and 28).

References
----------
.. [1] ANSI S3.5-1997, "Methods for Calculation of the Speech Intelligibility
       Index," American National Standards Institute, 1997.

.. [2] E. A. G. Shaw and M. M. Vaillancourt, "Transformation of sound-pressure
       level from the free field to the eardrum presented in numerical form,"
       *J. Acoust. Soc. Am.*, vol. 78, no. 3, pp. 1120-1123, 1985.
"""

from typing import Any, Dict, Tuple

import torch
import torch.nn as nn

from .errors import DimensionError
from .parameters import NUM_BANDS

# -------------------------------------------------- Data ----------------------------------------------------

# Data from ANSI S3.5-1997, Table 3
# Free-field to eardrum transfer function at the 1/3-octave band centres
# Format: [frequency (Hz), gain (dB)]
ANSI_S35_1997_TABLE3 = torch.tensor([
    [160.0,     0.00],
    [200.0,     0.50],
    [250.0,     1.00],
    [315.0,     1.40],
    [400.0,     1.50],
    [500.0,     1.80],
    [630.0,     2.40],
    [800.0,     3.10],
    [1000.0,    2.60],
    [1250.0,    3.00],
    [1600.0,    6.10],
    [2000.0,    12.00],
    [2500.0,    16.80],
    [3150.0,    15.00],
    [4000.0,    14.30],
    [5000.0,    10.70],
    [6300.0,    6.40],
    [8000.0,    1.80],
], dtype=torch.float64)

# --------------------------------------------- Eardrum Reference --------------------------------------------

class EardrumToFreeField(nn.Module):
    r"""
    Reference eardrum spectrum levels to the free field.

    Subtracts the free-field to eardrum transfer function :math:`TF_i` of
    ANSI S3.5-1997 Table 3 from each band level:

    .. math::
        E_i = E'_i - TF_i, \qquad N_i = N'_i - TF_i

    Parameters
    ----------
    dtype : torch.dtype, optional
        Data type of the stored table. Default: ``torch.float64``.

    Attributes
    ----------
    fc : torch.Tensor
        Band centre frequencies in Hz, shape ``[18]``.
    tf_gains : torch.Tensor
        Free-field to eardrum gains in dB, shape ``[18]``.

    Shape
    -----
    - Input: :math:`(..., 18)` levels in dB at the eardrum
    - Output: :math:`(..., 18)` levels in dB in the free field

    Notes
    -----
    The table is held in non-trainable buffers copied from the module-level
    literal data, so it follows ``.to(device)`` and is never modified by
    :meth:`forward`.

    Examples
    --------
    >>> ed2ff = EardrumToFreeField()
    >>> ed2ff(torch.full((18,), 50.0, dtype=torch.float64))[11]
    tensor(38., dtype=torch.float64)
    """

    def __init__(self, dtype: torch.dtype = torch.float64):
        super().__init__()
        self.dtype = dtype
        self.register_buffer('fc', ANSI_S35_1997_TABLE3[:, 0].to(dtype=dtype).clone())
        self.register_buffer('tf_gains', ANSI_S35_1997_TABLE3[:, 1].to(dtype=dtype).clone())

    def _check(self, levels: torch.Tensor, name: str):
        if levels.ndim < 1 or levels.shape[-1] != NUM_BANDS:
            raise DimensionError(name, f"expected trailing dimension {NUM_BANDS}, got shape {tuple(levels.shape)}")

    def forward(self, levels: torch.Tensor) -> torch.Tensor:
        """Eardrum levels in dB -> free-field levels in dB (Eqs. 27-28)."""
        self._check(levels, 'levels')
        return levels - self.tf_gains.to(device=levels.device, dtype=levels.dtype)

    def inverse(self, levels: torch.Tensor) -> torch.Tensor:
        """Free-field levels in dB -> eardrum levels in dB."""
        self._check(levels, 'levels')
        return levels + self.tf_gains.to(device=levels.device, dtype=levels.dtype)

    def get_transfer_function(self) -> Tuple[torch.Tensor, torch.Tensor]:
        """
        Get the tabulated transfer function.

        Returns
        -------
        freqs : torch.Tensor
            Band centre frequencies in Hz. Shape: [18].
        gains : torch.Tensor
            Free-field to eardrum gains in dB. Shape: [18].
        """
        return self.fc.clone(), self.tf_gains.clone()

    def get_parameters(self) -> Dict[str, Any]:
        return {'dtype': self.dtype,
                'num_bands': NUM_BANDS}

    def extra_repr(self) -> str:
        return f"num_bands={NUM_BANDS}, flow={self.fc[0].item():.0f}, fhigh={self.fc[-1].item():.0f}"
