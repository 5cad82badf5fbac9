"""Information criteria for nested linear models."""

import numpy as np


def aicc(rss, n, k):
    """Bias-corrected AIC of a linear model with ``k`` predictors.

    AICc = n * log(RSS / n) + 2 * (k + 1) * n / (n - k - 2)

    Parameters
    ----------
    rss : float or array-like
        Residual sum of squares (pooled over response columns).
    n : int
        Number of observations.
    k : int or array-like
        Number of predictors, parallel to ``rss``.

    Returns
    -------
    aicc : float or np.ndarray
        NaN where the correction is not applicable (``k + 1 >= n - 2``),
        -inf where the fit is exact (RSS = 0).
    """
    rss = np.asarray(rss, dtype=float)
    k = np.asarray(k, dtype=float)
    rss, k = np.broadcast_arrays(rss, k)
    out = np.full(rss.shape, np.nan)

    ok = k + 1 < n - 2
    with np.errstate(divide="ignore"):
        fit = n * np.log(np.maximum(rss[ok], 0.0) / n)
    out[ok] = fit + 2.0 * (k[ok] + 1) * n / (n - k[ok] - 2)
    return float(out) if out.ndim == 0 else out


def r2_adjusted(r2, n, k):
    """Adjusted R-squared of a model with ``k`` predictors and ``n`` rows."""
    r2 = np.asarray(r2, dtype=float)
    k = np.asarray(k, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        adj = 1.0 - (1.0 - r2) * (n - 1) / (n - k - 1)
    adj = np.where(k < n - 1, adj, np.nan)
    return float(adj) if adj.ndim == 0 else adj
