"""
Statistical Analysis Engine

Descriptive statistics and distribution shape for any numeric sample
(peer cohorts, QA samples):

    - mean, median (mean of the two middle order statistics for even n)
    - sample variance with an n-1 denominator, standard deviation
    - skewness  = sum(((x - mean) / sd) ** 3) / n
    - excess kurtosis = sum(((x - mean) / sd) ** 4) / n - 3
    - 95% confidence interval on the mean: mean +/- 1.96 * sd / sqrt(n)
    - Tukey outlier fences: Q1 - 1.5 * IQR, Q3 + 1.5 * IQR, with empirical
      quartiles read from the sorted sample at floor(n * 0.25) / floor(n * 0.75)

The distribution label is a fixed decision rule on skewness and kurtosis,
not a goodness-of-fit test. Treat it as a UI label only.

Samples smaller than the minimum group size return None, as do samples
with fewer than two finite values, so nothing downstream divides by zero.

A constant sample has a standard deviation of 0, so its confidence interval
collapses to a point: lower == mean == upper. The interval strictly
contains the mean only when the standard deviation is positive; otherwise
the bounds are equal to it.
"""

import math
from typing import Optional, Sequence

import numpy as np

from skillbench.schemas.common import DistributionType
from skillbench.schemas.peer import ConfidenceInterval, StatisticalAnalysis


MIN_GROUP_SIZE = 10
Z_95 = 1.96
TUKEY_K = 1.5


def classify_distribution(skewness: float, kurtosis: float) -> DistributionType:
    """Heuristic shape label from skewness and excess kurtosis."""
    if abs(skewness) > 1:
        return DistributionType.SKEWED_RIGHT if skewness > 0 else DistributionType.SKEWED_LEFT
    if kurtosis > 3:
        return DistributionType.BIMODAL
    if kurtosis < -1:
        return DistributionType.UNIFORM
    return DistributionType.NORMAL


def analyze_sample(
    sample: Sequence[float],
    min_sample_size: int = MIN_GROUP_SIZE,
    skill_id: Optional[str] = None,
) -> Optional[StatisticalAnalysis]:
    """
    Compute descriptive statistics for a sample.

    Args:
        sample: Numeric values; non-finite entries are dropped
        min_sample_size: Gate below which no analysis is produced (never < 2)
        skill_id: Optional label carried onto the result

    Returns:
        StatisticalAnalysis, or None when the sample is too small

    Example:
        >>> result = analyze_sample([10, 20, 30, 40, 50], min_sample_size=2)
        >>> result.mean, result.variance
        (30.0, 250.0)
    """
    values = np.asarray(sample, dtype=float)
    values = values[np.isfinite(values)]
    n = int(values.size)

    if n < max(2, min_sample_size):
        return None

    ordered = np.sort(values)
    mean = float(ordered.mean())
    median = float(np.median(ordered))
    variance = float(ordered.var(ddof=1))
    std_dev = math.sqrt(variance)

    if std_dev > 0:
        z = (ordered - mean) / std_dev
        skewness = float(np.sum(z ** 3) / n)
        kurtosis = float(np.sum(z ** 4) / n - 3)
        distribution_type = classify_distribution(skewness, kurtosis)
    else:
        # Constant sample: no spread, shape moments are undefined
        skewness = 0.0
        kurtosis = 0.0
        distribution_type = DistributionType.UNIFORM

    margin = Z_95 * std_dev / math.sqrt(n)

    q1 = float(ordered[int(math.floor(n * 0.25))])
    q3 = float(ordered[min(n - 1, int(math.floor(n * 0.75)))])
    iqr = q3 - q1

    return StatisticalAnalysis(
        skill_id=skill_id,
        sample_size=n,
        mean=mean,
        median=median,
        standard_deviation=std_dev,
        variance=variance,
        skewness=skewness,
        kurtosis=kurtosis,
        confidence_interval_95=ConfidenceInterval(lower=mean - margin, upper=mean + margin),
        outlier_thresholds=ConfidenceInterval(lower=q1 - TUKEY_K * iqr, upper=q3 + TUKEY_K * iqr),
        distribution_type=distribution_type,
    )
