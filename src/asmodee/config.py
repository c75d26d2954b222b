"""Configuration constants for the ASMODEE pipeline."""

# Largest number of recent days held out of fitting during the search
DEFAULT_MAX_K = 7

# Type-1 error rate of the predictive intervals
DEFAULT_ALPHA = 0.05

# Null probability of a point being flagged by noise alone, for the binomial p-value
OUTLIER_BASE_RATE = 0.05

# Cross-validation strategy used to compare candidates
DEFAULT_METHOD = "jackknife_rmse"

# Candidates compared when none are configured
DEFAULT_MODEL_NAMES = ("constant_poisson", "linear_poisson", "linear_negbin")
