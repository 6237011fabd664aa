"""Device Compatibility Test Suite for spectrum resolution

This test suite verifies that the resolution stages and the end-to-end
SpectrumResolver work correctly across all available devices (CPU, CUDA, MPS).

Contents:
- 4 nn.Module building blocks:
  * ApparentSNR: Apparent SNR from the MTFI
  * SpeechNoiseDecomposition: Apparent speech/noise spectra
  * BinauralThresholdCorrection: Binaural threshold advantage
  * EardrumToFreeField: Table 3 eardrum to free-field referencing
- 1 nn.Module model:
  * SpectrumResolver: ANSI S3.5-1997 Section 5.3

Test structure:
- Initialization with default parameters
- Application on single and batch inputs
- Device transfer (CPU, CUDA, MPS)
- Module repr and parameter inspection
- Timing measurements
- Gradient flow to the measured quantities

Usage:
    # Standalone execution (tests all available devices)
    python test_device_resolver.py

    # pytest execution
    pytest test_device_resolver.py -v

    # pytest execution on specific device
    pytest test_device_resolver.py -v -k "cpu"
"""

import torch
import pytest
import time
from typing import List


# ================================================================================================
# Device Detection
# ================================================================================================

def get_available_devices() -> List[str]:
    """Detect all available PyTorch devices on the system.

    Returns
    -------
    list of str
        List of device strings: ['cpu'], ['cpu', 'cuda'], or ['cpu', 'mps']
    """
    devices = ['cpu']

    if torch.cuda.is_available():
        devices.append('cuda')

    if torch.backends.mps.is_available():
        devices.append('mps')

    return devices


def get_dtype(device: str) -> torch.dtype:
    """MPS has no float64 support."""
    return torch.float32 if device == 'mps' else torch.float64


def print_device_info():
    """Print information about available devices."""
    devices = get_available_devices()

    print("\n" + "=" * 80)
    print("AVAILABLE DEVICES")
    print("=" * 80)
    print(f"CPU:  ✓ Always available")
    print(f"CUDA: {'✓ Available' if 'cuda' in devices else '✗ Not available'}")
    print(f"MPS:  {'✓ Available' if 'mps' in devices else '✗ Not available'}")
    print("=" * 80 + "\n")


# ================================================================================================
# Test Data Factories
# ================================================================================================

def create_test_measurement(device: str, batch_size: int = 1, seed: int = 0):
    """Create a random eardrum measurement.

    Parameters
    ----------
    device : str
        Target device ('cpu', 'cuda', 'mps')
    batch_size : int
        Batch size

    Returns
    -------
    tuple of torch.Tensor
        CSNSL (batch_size, 18), MTFI (batch_size, 18, 9), threshold (batch_size, 18)
    """
    dtype = get_dtype(device)
    gen = torch.Generator().manual_seed(seed)
    csnsl = 20.0 + 60.0 * torch.rand(batch_size, 18, generator=gen)
    mtfi = 0.999 * torch.rand(batch_size, 18, 9, generator=gen)
    threshold = 30.0 * torch.rand(batch_size, 18, generator=gen)
    return (csnsl.to(device=device, dtype=dtype),
            mtfi.to(device=device, dtype=dtype),
            threshold.to(device=device, dtype=dtype))


def time_forward_pass(module, *args, device='cpu', n_warmup=2, n_runs=5):
    """Time a forward pass through a module.

    Returns
    -------
    float
        Average time in milliseconds
    """
    # Warmup (especially important for GPU)
    with torch.no_grad():
        for _ in range(n_warmup):
            _ = module(*args)
            if device == 'mps':
                torch.mps.synchronize()
            elif device == 'cuda':
                torch.cuda.synchronize()

    # Timing runs
    times = []
    with torch.no_grad():
        for _ in range(n_runs):
            if device == 'mps':
                torch.mps.synchronize()
            elif device == 'cuda':
                torch.cuda.synchronize()

            start = time.time()
            _ = module(*args)

            if device == 'mps':
                torch.mps.synchronize()
            elif device == 'cuda':
                torch.cuda.synchronize()

            elapsed = time.time() - start
            times.append(elapsed * 1000)  # Convert to ms

    return sum(times) / len(times)  # Average


# ================================================================================================
# Test: Building Blocks
# ================================================================================================

@pytest.mark.parametrize("device", get_available_devices())
@pytest.mark.parametrize("batch_size", [1, 8])
def test_building_blocks(device, batch_size):
    """Test the resolution stages on specified device."""
    from torch_sii.common import (ApparentSNR, SpeechNoiseDecomposition,
                                  BinauralThresholdCorrection, EardrumToFreeField)

    print(f"\n{'='*80}")
    print(f"TEST: Building blocks - Device: {device.upper()}, Batch: {batch_size}")
    print(f"{'='*80}\n")

    csnsl, mtfi, threshold = create_test_measurement(device, batch_size)
    dev = device.split(':')[0]

    snr = ApparentSNR().to(device)
    R = snr(mtfi)
    assert R.device.type == dev
    assert R.shape == (batch_size, 18)
    print(f"✓ ApparentSNR: {mtfi.shape} -> {R.shape}")

    speech, noise = SpeechNoiseDecomposition().to(device)(csnsl, R)
    assert speech.device.type == dev and noise.device.type == dev
    assert speech.shape == csnsl.shape
    print(f"✓ SpeechNoiseDecomposition: {csnsl.shape} -> {speech.shape}, {noise.shape}")

    T_out = BinauralThresholdCorrection().to(device)(threshold, 2)
    assert T_out.device.type == dev
    assert torch.allclose(T_out, threshold - 1.7, atol=1e-5)
    print(f"✓ BinauralThresholdCorrection: {threshold.shape} -> {T_out.shape}")

    ed2ff = EardrumToFreeField(dtype=get_dtype(device)).to(device)
    E = ed2ff(speech)
    assert E.device.type == dev
    assert ed2ff.tf_gains.device.type == dev
    print(f"✓ EardrumToFreeField: {speech.shape} -> {E.shape}")
    print(f"  Module: {ed2ff}")

    print(f"\n✓ Building blocks passed on {device.upper()} (batch={batch_size})\n")


# ================================================================================================
# Test: SpectrumResolver
# ================================================================================================

@pytest.mark.parametrize("device", get_available_devices())
@pytest.mark.parametrize("batch_size", [1, 8])
def test_spectrum_resolver(device, batch_size):
    """Test SpectrumResolver on specified device."""
    from torch_sii import SpectrumResolver

    print(f"\n{'='*80}")
    print(f"TEST: SpectrumResolver - Device: {device.upper()}, Batch: {batch_size}")
    print(f"{'='*80}\n")

    # Initialization
    resolver = SpectrumResolver(dtype=get_dtype(device), return_stages=True)
    resolver = resolver.to(device)

    print(f"✓ Initialization successful")
    print(f"  Module: {resolver}")
    print(f"  extra_repr: {resolver.extra_repr()}")

    params = resolver.get_parameters()
    print(f"  Verified: snr_range={params['snr_range']}, "
          f"binaural_advantage={params['binaural_advantage']}, dtype={params['dtype']}")

    csnsl, mtfi, threshold = create_test_measurement(device, batch_size)
    dev = device.split(':')[0]
    print(f"  Input device: {csnsl.device}")

    modes = torch.tensor([1 + (k % 2) for k in range(batch_size)])

    avg_time = time_forward_pass(resolver, csnsl, mtfi, threshold, modes, device=dev)
    (E, N, T_out), stages = resolver(csnsl, mtfi, threshold, modes)
    print(f"  Output device: {E.device}")

    for out in (E, N, T_out):
        assert out.device.type == dev
        assert out.shape == csnsl.shape
        assert torch.isfinite(out).all()
    assert torch.allclose(E - N, stages['apparent_snr'], atol=1e-4)
    print(f"✓ Forward: {csnsl.shape}, {mtfi.shape} -> 3 x {E.shape} ({avg_time:.3f} ms avg)")

    # Single (unbatched) measurement
    E1, N1, T1 = resolver(csnsl[0], mtfi[0], threshold[0], int(modes[0]))[0]
    assert E1.shape == (18,)
    assert torch.allclose(E1, E[0], atol=1e-5)
    print(f"✓ Forward 1D: {csnsl[0].shape} -> {E1.shape}")

    print(f"\n✓ SpectrumResolver passed on {device.upper()} (batch={batch_size})\n")


@pytest.mark.parametrize("device", get_available_devices())
def test_spectrum_resolver_gradients(device):
    """Gradients flow from the outputs back to P and M."""
    from torch_sii import SpectrumResolver

    resolver = SpectrumResolver(dtype=get_dtype(device)).to(device)
    csnsl, mtfi, _ = create_test_measurement(device, batch_size=2)
    csnsl.requires_grad_(True)
    # Away from the +-15 dB limits so the clamp passes gradients
    mtfi = (0.2 + 0.6 * mtfi).detach().requires_grad_(True)

    E, N, _ = resolver(csnsl, mtfi)
    (E.sum() + N.sum()).backward()

    assert csnsl.grad is not None and torch.isfinite(csnsl.grad).all()
    assert mtfi.grad is not None and torch.isfinite(mtfi.grad).all()
    print(f"\n✓ Gradients on {device.upper()}: |dP|={csnsl.grad.abs().sum():.3f}, |dM|={mtfi.grad.abs().sum():.3f}")


# ================================================================================================
# Main Execution (for standalone script)
# ================================================================================================

def main():
    """Run all tests when script is executed directly."""
    print_device_info()

    devices = get_available_devices()

    # Test configuration: (test_function, batch_sizes)
    test_configs = [
        (test_building_blocks, [1, 8]),
        (test_spectrum_resolver, [1, 8]),
    ]

    # Run all tests
    results = {device: {test_func.__name__: [] for test_func, _ in test_configs}
               for device in devices}

    for device in devices:
        print(f"\n{'='*80}")
        print(f"TESTING ON {device.upper()}")
        print(f"{'='*80}\n")

        for test_func, batch_sizes in test_configs:
            test_name = test_func.__name__

            for batch_size in batch_sizes:
                try:
                    test_func(device, batch_size)
                    results[device][test_name].append(f"✓ PASSED (batch={batch_size})")
                except Exception as e:
                    print(f"\n✗ FAILED: {test_name} on {device.upper()} (batch={batch_size})")
                    print(f"  Error: {str(e)}\n")
                    results[device][test_name].append(f"✗ FAILED (batch={batch_size}): {str(e)}")

        try:
            test_spectrum_resolver_gradients(device)
            results[device]['test_spectrum_resolver_gradients'] = ["✓ PASSED"]
        except Exception as e:
            print(f"\n✗ FAILED: test_spectrum_resolver_gradients on {device.upper()}")
            print(f"  Error: {str(e)}\n")
            results[device]['test_spectrum_resolver_gradients'] = [f"✗ FAILED: {str(e)}"]

    # Print summary
    print("\n" + "="*80)
    print("TEST SUMMARY")
    print("="*80 + "\n")

    for device in devices:
        print(f"{device.upper()}:")
        for test_name, test_results in results[device].items():
            status = "✓ PASSED" if all("✓" in r for r in test_results) else "✗ FAILED"
            print(f"  {test_name:45s}: {status}")
        print()

    # Check if all tests passed
    all_passed = all(
        all("✓" in r for r in test_results)
        for device_results in results.values()
        for test_results in device_results.values()
    )

    print("="*80)
    if all_passed:
        print("✓ ALL TESTS PASSED ON ALL DEVICES")
    else:
        print("✗ SOME TESTS FAILED")
    print("="*80 + "\n")


if __name__ == '__main__':
    main()
