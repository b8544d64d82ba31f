# stdlib
import argparse
from typing import List, Optional
# projectlib
from smart_grid_insight.config.env import (
    DEFAULT_PROFILE,
    FORECAST_MONTHS,
    LOG_DIR,
    RANDOM_SEED,
    VERBOSITY,
    WRITE_LOG,
)
from smart_grid_insight.config.profiles import PROFILES
from smart_grid_insight.data.loaders import read_rows, records_to_frame
from smart_grid_insight.analysis.aggregation import generate_yearly_summary
from smart_grid_insight.analysis.report import build_report
from smart_grid_insight.models.forecasting import NumpyRandomSource
from smart_grid_insight.pipeline import (
    ForecastCache,
    ScanResult,
    UploadError,
    ValidationFailedError,
    build_dashboard_series,
    process_upload,
)
from smart_grid_insight.utils.logging import Logger

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Normalize a consumption CSV to monthly data, fill missing "
            "months and extend it with a forecast."
        )
    )
    parser.add_argument("csv", help="CSV file with date and consumption columns")
    parser.add_argument(
        "--profile",
        default=DEFAULT_PROFILE,
        help=f"Forecasting profile, one of {sorted(PROFILES)}",
    )
    parser.add_argument(
        "--months",
        type=int,
        default=FORECAST_MONTHS,
        help="Forecast horizon in months (0 disables forecasting)",
    )
    parser.add_argument("--seed", type=int, default=RANDOM_SEED)
    parser.add_argument("--output", help="Optional CSV path for the series")
    return parser.parse_args(argv)

def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the upload pipeline on a local CSV and print a yearly summary.

    Local files are not passed through the security scanner; they are
    treated as having passed it.
    """
    args = parse_args(argv)
    logger = Logger(VERBOSITY, LOG_DIR, WRITE_LOG, name="forecast")
    rows = read_rows(args.csv)
    try:
        upload = process_upload(
            rows, ScanResult(passed=True, message="local file"), logger=logger
        )
    except ValidationFailedError as e:
        logger(str(e))
        for line in e.report.report:
            logger(line)
        return 1
    except UploadError as e:
        logger(str(e))
        return 1
    for line in upload.report.report:
        logger(line, verbosity=1)

    profile = args.profile if args.months > 0 else None
    series = build_dashboard_series(
        upload.records,
        profile,
        args.months,
        cache=ForecastCache(),
        rng=NumpyRandomSource(args.seed),
        logger=logger,
    )
    for year, summary in generate_yearly_summary(series).items():
        print(
            f"{year}: {summary.total_consumption:,.0f} kWh "
            f"(YoY {summary.year_over_year_change:+.2f}%), "
            f"high {summary.highest_month.month}, "
            f"low {summary.lowest_month.month}"
        )
    report = build_report(series, args.profile)
    print(
        f"{report.title} | profile {report.profile} | "
        f"MAE {report.metrics.mae:.4f} MSE {report.metrics.mse:.4f} "
        f"R2 {report.metrics.r2:.3f}"
    )
    if args.output:
        records_to_frame(series).write_csv(args.output)
        logger(f"Wrote {len(series)} records to {args.output}", verbosity=1)
    return 0

if __name__=="__main__":
    raise SystemExit(main())
