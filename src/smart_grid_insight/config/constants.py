# Granularity detection: upper bounds (days) on the median sample gap
DAILY_MAX_GAP_DAYS = 7
MONTHLY_MAX_GAP_DAYS = 45
# Number of consecutive gaps inspected when detecting granularity
GRANULARITY_SAMPLE_GAPS = 10
# A gap is significant above this multiple of the median gap
SIGNIFICANT_GAP_FACTOR = 2.0
# Amplitude of the synthetic seasonal sinusoid 1 + A*sin(2*pi*m/12)
SYNTHETIC_SEASONAL_AMPLITUDE = 0.2
# Annual growth rate bounds before profile scaling
MIN_ANNUAL_GROWTH = -0.20
MAX_ANNUAL_GROWTH = 0.30
# Records needed for a year-over-year trend and for empirical seasonality
YOY_TREND_MIN_RECORDS = 13
SEASONALITY_MIN_RECORDS = 12
# Most recent years used to estimate the seasonal index
SEASONALITY_MAX_YEARS = 3
# Noise amplitude as a fraction of the predicted value at zero reduction
BASE_NOISE_SCALE = 0.05
# Month-over-month change is clamped to +/- this percentage
MAX_MONTHLY_CHANGE_PCT = 200.0
