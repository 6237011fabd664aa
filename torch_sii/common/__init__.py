"""Reusable building blocks for equivalent spectrum level computation."""

from torch_sii.common.errors import (
    SpectrumLevelError,
    ParameterPairingError,
    UnknownIdentifierError,
    MissingRequiredParameterError,
    DimensionError,
    InvalidListeningModeError,
)
from torch_sii.common.parameters import (
    NUM_BANDS,
    NUM_MODULATION_FREQUENCIES,
    ListeningMode,
    EardrumMeasurement,
    parse_identifier_pairs,
    as_band_vector,
    as_mtfi_matrix,
)
from torch_sii.common.modulation import ApparentSNR
from torch_sii.common.levels import (
    BINAURAL_ADVANTAGE_DB,
    SpeechNoiseDecomposition,
    BinauralThresholdCorrection,
)
from torch_sii.common.ears import ANSI_S35_1997_TABLE3, EardrumToFreeField

__all__ = [
    "SpectrumLevelError",
    "ParameterPairingError",
    "UnknownIdentifierError",
    "MissingRequiredParameterError",
    "DimensionError",
    "InvalidListeningModeError",
    "NUM_BANDS",
    "NUM_MODULATION_FREQUENCIES",
    "ListeningMode",
    "EardrumMeasurement",
    "parse_identifier_pairs",
    "as_band_vector",
    "as_mtfi_matrix",
    "ApparentSNR",
    "BINAURAL_ADVANTAGE_DB",
    "SpeechNoiseDecomposition",
    "BinauralThresholdCorrection",
    "ANSI_S35_1997_TABLE3",
    "EardrumToFreeField",
]
