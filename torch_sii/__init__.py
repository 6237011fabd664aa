"""
torch_sii: PyTorch Speech Intelligibility Index Inputs
======================================================

PyTorch implementation of ANSI S3.5-1997 Section 5.3: equivalent speech,
noise and threshold spectrum levels from Modulation Transfer Function for
Intensity (MTFI) and Combined Speech and Noise Spectrum Level (CSNSL)
measurements at the eardrum of the listener. The three resolved band vectors
are the input of a Speech Intelligibility Index (SII) computation.

**Key Features:**
    - Validated, structured measurement input with distinct error types
    - Batched, device-agnostic computation (CPU, CUDA, MPS)
    - Differentiable with respect to the measured quantities
    - Modular stages reusable on their own

**Quick Start:**

    >>> import torch
    >>> import torch_sii
    >>>
    >>> P = [50.0] * 18                      # CSNSL in dB, bands 160 Hz ... 8 kHz
    >>> M = torch.full((18, 9), 0.5)         # MTFI, 18 bands x 9 modulation frequencies
    >>> E, N, T = torch_sii.resolve('P', P, 'M', M, 'b', 2)
    >>>
    >>> # Or use the model directly, with batches
    >>> resolver = torch_sii.SpectrumResolver()
    >>> E, N, T = resolver(torch.full((4, 18), 50.0), torch.full((4, 18, 9), 0.5))

**Package Structure:**

    torch_sii/
    ├── models/             # End-to-end resolution
    │   └── SpectrumResolver        - ANSI S3.5-1997 Section 5.3
    │
    └── common/             # Reusable building blocks
        ├── parameters.py           - Measurement structure and validation
        ├── errors.py               - Validation error types
        ├── modulation.py           - Apparent SNR from the MTFI
        ├── levels.py               - Speech/noise decomposition, binaural threshold
        └── ears.py                 - Free-field to eardrum transfer function

**Author:**
    Stefano Giacomelli - Ph.D. candidate @ DISIM dpt. - University of L'Aquila

**License:**
    GNU General Public License v3.0 or later (GPLv3+)

**References:**
    - ANSI S3.5-1997, "Methods for Calculation of the Speech Intelligibility
      Index," American National Standards Institute, 1997.
"""

# ============================================================================
# Package Metadata
# ============================================================================

__version__ = "0.1.0"
__author__ = "Stefano Giacomelli"
__email__ = "stefano.giacomelli@graduate.univaq.it"
__license__ = "GPL-3.0-or-later"
__description__ = "PyTorch equivalent speech, noise and threshold spectrum levels for SII (ANSI S3.5-1997, 5.3)"

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

# ============================================================================
# Public API - End-to-End Model
# ============================================================================

from torch_sii.models.spectrum_resolver import SpectrumResolver, resolve, resolve_batch

# ============================================================================
# Public API - Common Building Blocks
# ============================================================================

# --- Measurement Input ---
from torch_sii.common.parameters import (
    NUM_BANDS,                          # 18 third-octave bands
    NUM_MODULATION_FREQUENCIES,         # 9 MTFI modulation frequencies
    ListeningMode,                      # Monaural / binaural
    EardrumMeasurement,                 # Validated P, M, T, B
    parse_identifier_pairs,             # Identifier/value pair parsing
)

# --- Errors ---
from torch_sii.common.errors import (
    SpectrumLevelError,                 # Base class
    ParameterPairingError,              # Identifier not followed by value
    UnknownIdentifierError,             # Identifier not in P, M, T, B
    MissingRequiredParameterError,      # P or M absent
    DimensionError,                     # Wrong vector/matrix shape
    InvalidListeningModeError,          # B not monaural/binaural
)

# --- Processing Stages ---
from torch_sii.common.modulation import ApparentSNR
from torch_sii.common.levels import SpeechNoiseDecomposition, BinauralThresholdCorrection
from torch_sii.common.ears import ANSI_S35_1997_TABLE3, EardrumToFreeField

# ============================================================================
# Package-Level Exports
# ============================================================================

__all__ = [
    # Model
    "SpectrumResolver",
    "resolve",
    "resolve_batch",

    # Measurement input
    "NUM_BANDS",
    "NUM_MODULATION_FREQUENCIES",
    "ListeningMode",
    "EardrumMeasurement",
    "parse_identifier_pairs",

    # Errors
    "SpectrumLevelError",
    "ParameterPairingError",
    "UnknownIdentifierError",
    "MissingRequiredParameterError",
    "DimensionError",
    "InvalidListeningModeError",

    # Stages
    "ApparentSNR",
    "SpeechNoiseDecomposition",
    "BinauralThresholdCorrection",
    "ANSI_S35_1997_TABLE3",
    "EardrumToFreeField",
]
