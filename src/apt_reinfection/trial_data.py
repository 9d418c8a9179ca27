"""
TRIAL DATA AND PRIOR BOUNDS
===========================

Literal values from the LUSTRUM randomised trial of accelerated partner
therapy (Estcourt et al, https://doi.org/10.1016/s2468-2667(22)00204-3) and
the literature-derived ranges used as priors.

Table 1, sex partners in the control and intervention phase: 2589, 2218.
Future sex is "likely" for the definite partners plus half of the
"possible" ones: (909 + 614/2)/2589 = 47%, (916 + 458/2)/2218 = 52%.

Table 2, primary outcome (chlamydia test at 12-24 weeks): 116/1724 (6.7%),
73/1536 (4.8%). Table S3, index patients whose partner accepted APT: 2/106.

Table 4, chlamydia positivity among returned partner self-tests: 78/120.

All durations are in days; rates are their reciprocals.
"""

# Random seed of the published analysis
DEFAULT_SEED = 652156
DEFAULT_SAMPLE_SIZE = 100_000
DEFAULT_CONFIDENCE_LEVEL = 0.95

### likelihood of future sex with partner
PARTNERS_CONTROL = 2589
FUTURE_SEX_CONTROL = 909 + 614 / 2
PARTNERS_INTERVENTION = 2218
FUTURE_SEX_INTERVENTION = 916 + 458 / 2

### partner positivity (STI self-test return)
POSITIVE_TESTS = 78
RETURNED_TESTS = 120

### primary outcome, (positive, tested)
OUTCOME_CONTROL = (116, 1724)
OUTCOME_INTERVENTION = (73, 1536)
OUTCOME_APT_ACCEPTED = (2, 106)

### priors
# sex acts between once a day and once a week (Natsal)
SEX_INTERVAL_RANGE = (1.0, 7.0)
# per-act transmission probability (https://doi.org/10.1097/OLQ.0b013e318248a550)
BETA_RANGE = (0.06, 0.167)
# duration of infection (https://doi.org/10.1136/sextrans-2013-051279)
INFECTION_DURATION_RANGE = (365 / 2, 365.0)
# partnership lasts from one week to six months
PARTNERSHIP_DURATION_RANGE = (7.0, 365 / 2)
# follow-up between 12 and 24 weeks
STUDY_DURATION_RANGE = (12 * 7.0, 24 * 7.0)
EPSILON_RANGE = (0.0, 1.0)
# mean time to partner treatment (https://doi.org/10.1101/2020.12.07.20245142)
PARTNER_TREATMENT_DAYS = 3.2

### sensitivity analysis
EPSILON_STEP = 0.05
REPORTED_EPSILON = (0.0, 0.6, 1.0)
SLOPE_STEP = 0.1
SLOPE_PROBS = (0.0025, 0.5, 0.975)
