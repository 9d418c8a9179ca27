from .transmission import (
    check_lengths,
    reinfection_probability,
    reinfection_probability_slope,
    slope_per_step,
)
