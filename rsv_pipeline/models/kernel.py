import numpy as np


# Gaussian kernel scale: weight exp(-(2.5 u)^2 / 2) at u = distance / bandwidth
GAUSS_SCALE = 2.5


def _bandwidths(x: np.ndarray, nn: float, h: float, degree: int) -> np.ndarray:
    """Per-point bandwidth: the larger of `h` and the distance to the k-th neighbour."""
    n = len(x)
    k = min(n, max(int(np.ceil(nn * n)), degree + 1))
    dist = np.abs(x[:, None] - x[None, :])
    kth = np.sort(dist, axis=1)[:, k - 1]
    return np.maximum(kth, h)


def fit_kernel(
    x: np.ndarray,
    y: np.ndarray,
    nn: float = 0.3,
    h: float = 0.05,
    degree: int = 2,
) -> np.ndarray:
    """Local polynomial regression with Gaussian weights, evaluated at `x`.

    At each point a weighted least-squares polynomial of `degree` is fitted
    in ``x - x0``; its intercept is the estimate. The bandwidth adapts to the
    data through the nearest-neighbour fraction `nn`, with `h` as a floor.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.shape != y.shape:
        raise ValueError("x and y must have the same shape")
    if len(x) <= degree:
        raise ValueError(f"Need more than {degree} points for a degree-{degree} fit")
    if not 0 < nn <= 1:
        raise ValueError(f"nn must be in (0, 1], got {nn}")

    bws = _bandwidths(x, nn, h, degree)
    fitted = np.empty(len(x), dtype=float)
    for i, (x0, bw) in enumerate(zip(x, bws)):
        sw = np.sqrt(np.exp(-0.5 * (GAUSS_SCALE * (x - x0) / bw) ** 2))
        design = np.vander(x - x0, degree + 1, increasing=True)
        beta, *_ = np.linalg.lstsq(design * sw[:, None], y * sw, rcond=None)
        fitted[i] = beta[0]
    return fitted
