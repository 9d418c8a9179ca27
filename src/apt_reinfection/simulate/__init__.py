from .sample_parameters import (
    PROTOCOLS,
    ParameterEnsemble,
    SamplerConfig,
    make_rng,
    sample_parameters,
)
