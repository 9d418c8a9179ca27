from .version_info import VERSION as __version__  # noqa: F401
from .analytic.transmission import reinfection_probability, reinfection_probability_slope  # noqa: F401
from .analysis import AnalysisConfig, AnalysisResult, run_analysis  # noqa: F401
