from .posterior_filter import (
    UNIVERSAL_INTERVAL,
    PosteriorSubset,
    clopper_pearson_interval,
    filter_posterior,
    posterior_from_counts,
)
