"""End-to-end resolution models."""

from torch_sii.models.spectrum_resolver import SpectrumResolver, resolve, resolve_batch

__all__ = ["SpectrumResolver",
           "resolve",
           "resolve_batch"
           ]
