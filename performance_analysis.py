# /// script
# requires-python = ">=3.11"
# dependencies = [
#   "requests",
#   "pandas",
# ]
# ///
"""Website Performance Analysis Pipeline.

Fetches Google PageSpeed Insights results for a URL (or synthesizes
plausible demo data when no API key is configured) and normalizes them
into an immutable PerformanceResult with per-resource-type breakdowns.
"""

from __future__ import annotations

import argparse
import enum
import json
import math
import os
import random
import sys
import tomllib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Mapping
from urllib.parse import urlparse

import pandas as pd
import requests

__version__ = "0.3.0"

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PAGESPEED_API_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"

VALID_STRATEGIES = ("desktop", "mobile")
VALID_OUTPUT_FORMATS = ("table", "csv", "json")
VALID_SCHEMES = ("http", "https")

DEFAULT_STRATEGY = "desktop"
DEFAULT_OUTPUT_FORMAT = "table"
DEFAULT_OUTPUT_DIR = "./reports"
REQUIRED_CATEGORIES = ("performance", "accessibility", "seo")

# Legacy placeholder key; treated the same as no key at all.
DEMO_API_KEY = "demo"
API_KEY_ENV_VARS = ("PAGESPEED_API_KEY", "NEXT_PUBLIC_PAGESPEED_API_KEY")

# Namespace attribute marking a flag given on the command line
EXPLICIT_PREFIX = "_explicit_"

CONFIG_FILENAMES = ["pagespeed.toml"]
CONFIG_SEARCH_PATHS = [
    Path.cwd(),
    Path.home() / ".config" / "pagespeed",
]

RESOURCE_CATEGORIES = ("html", "css", "javascript", "images")

# (label substring, category) in precedence order; first match wins.
RESOURCE_TYPE_RULES = (
    ("document", "html"),
    ("stylesheet", "css"),
    ("script", "javascript"),
    ("image", "images"),
)

# Timing metrics: (audit_id, PerformanceResult field)
TIMING_AUDITS = [
    ("first-contentful-paint", "first_contentful_paint"),
    ("largest-contentful-paint", "largest_contentful_paint"),
    ("speed-index", "speed_index"),
    ("interactive", "time_to_interactive"),
    ("cumulative-layout-shift", "cumulative_layout_shift"),
    ("max-potential-fid", "first_input_delay"),
]

RESOURCE_SUMMARY_AUDIT = "resource-summary"

# Demo-mode ranges
MOCK_SCORE_RANGES = {
    "performance_score": (60, 95),
    "accessibility_score": (85, 100),
    "seo_score": (75, 95),
}
MOCK_LOAD_TIME_RANGE_MS = (1000, 4000)
MOCK_CLS_MAX = 0.1
MOCK_FID_RANGE_MS = (50, 150)
# Per-category transfer size bands in KiB
MOCK_SIZE_RANGES_KB = {
    "html": (10, 50),
    "css": (20, 120),
    "javascript": (100, 600),
    "images": (200, 1200),
}
MOCK_REQUEST_RANGES = {
    "html": (1, 4),
    "css": (2, 10),
    "javascript": (5, 20),
    "images": (10, 40),
}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ErrorKind(str, enum.Enum):
    INVALID_INPUT = "invalid_input"
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    PROVIDER_ERROR = "provider_error"
    NETWORK_ERROR = "network_error"
    MALFORMED_RESPONSE = "malformed_response"


class AnalysisError(Exception):
    """Raised when a URL cannot be analyzed.

    ``message`` is safe to show to end users; ``status`` holds the provider
    HTTP status when a response was received.
    """

    def __init__(self, kind: ErrorKind, message: str, status: int | None = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status = status


STATUS_ERRORS = {
    400: (ErrorKind.BAD_REQUEST, "Invalid URL or the website cannot be analyzed"),
    401: (ErrorKind.UNAUTHORIZED, "API key is invalid or quota exceeded"),
    403: (ErrorKind.UNAUTHORIZED, "API key is invalid or quota exceeded"),
    429: (ErrorKind.RATE_LIMITED, "Too many requests. Please try again later"),
}

INVALID_URL_MESSAGE = "Please enter a valid URL (including http:// or https://)"
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again"


# ---------------------------------------------------------------------------
# Domain Model
# ---------------------------------------------------------------------------


TIMING_FIELDS = tuple(field_name for _, field_name in TIMING_AUDITS) + ("total_load_time",)


def _category_map(values: Mapping[str, float] | None, integral: bool = False) -> Mapping[str, float]:
    merged = {category: 0 for category in RESOURCE_CATEGORIES}
    for key, value in (values or {}).items():
        if key not in merged:
            raise ValueError(f"unknown resource category: {key!r}")
        if not math.isfinite(value) or value < 0:
            raise ValueError(f"{key!r} must be a finite non-negative number, got {value}")
        if integral and not isinstance(value, int):
            raise ValueError(f"{key!r} must be an integer count, got {value!r}")
        merged[key] = value
    return MappingProxyType(merged)


@dataclass(frozen=True)
class PerformanceResult:
    """Normalized metrics for one analysis run.

    Timings are milliseconds, sizes are bytes. ``total_size`` and
    ``total_requests`` are always computed from the per-category maps.
    Results are not hashable.
    """

    performance_score: int
    accessibility_score: int
    seo_score: int
    first_contentful_paint: float = 0
    largest_contentful_paint: float = 0
    speed_index: float = 0
    time_to_interactive: float = 0
    total_load_time: float = 0
    cumulative_layout_shift: float = 0
    first_input_delay: float = 0
    resource_sizes: Mapping[str, float] = field(default_factory=dict)
    request_counts: Mapping[str, int] = field(default_factory=dict)

    __hash__ = None

    def __post_init__(self):
        for name in ("performance_score", "accessibility_score", "seo_score"):
            score = getattr(self, name)
            if not 0 <= score <= 100:
                raise ValueError(f"{name} must be within 0-100, got {score}")
        for name in TIMING_FIELDS:
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be a finite non-negative number, got {value}")
        object.__setattr__(self, "resource_sizes", _category_map(self.resource_sizes))
        object.__setattr__(self, "request_counts", _category_map(self.request_counts, integral=True))

    @property
    def total_size(self) -> float:
        return sum(self.resource_sizes.values())

    @property
    def total_requests(self) -> int:
        return sum(self.request_counts.values())

    def to_dict(self) -> dict:
        """Flatten into a single report row."""
        row: dict[str, object] = {
            "performance_score": self.performance_score,
            "accessibility_score": self.accessibility_score,
            "seo_score": self.seo_score,
            "fcp_ms": round(self.first_contentful_paint),
            "lcp_ms": round(self.largest_contentful_paint),
            "speed_index_ms": round(self.speed_index),
            "tti_ms": round(self.time_to_interactive),
            "total_load_time_ms": round(self.total_load_time),
            "cls": round(self.cumulative_layout_shift, 4),
            "fid_ms": round(self.first_input_delay),
        }
        for category in RESOURCE_CATEGORIES:
            row[f"{category}_bytes"] = self.resource_sizes[category]
            row[f"{category}_requests"] = self.request_counts[category]
        row["total_size_bytes"] = self.total_size
        row["total_requests"] = self.total_requests
        return row


# ---------------------------------------------------------------------------
# URL Validation
# ---------------------------------------------------------------------------


def validate_url(value: str) -> bool:
    """Return True if value is an absolute http(s) URL with a host."""
    if not isinstance(value, str):
        return False
    value = value.strip()
    if not value:
        return False
    try:
        parsed = urlparse(value)
        # Accessing .port validates it and raises ValueError when malformed
        parsed.port
    except ValueError:
        return False
    if parsed.scheme.lower() not in VALID_SCHEMES:
        return False
    if not parsed.hostname or any(ch.isspace() for ch in parsed.netloc):
        return False
    return True


# ---------------------------------------------------------------------------
# Response Parsing
# ---------------------------------------------------------------------------


def _number(value, default: float = 0) -> float:
    """Return value if it is a finite, non-negative number, else default."""
    # bool is an int subclass but never a valid metric
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if math.isfinite(value) and value >= 0:
            return value
    return default


def _count(value) -> int:
    count = _number(value)
    return int(count) if count == int(count) else 0


def classify_resource_type(label: str | None) -> str | None:
    """Map a Lighthouse resourceType label to a resource category, or None."""
    label = (label or "").lower()
    for needle, category in RESOURCE_TYPE_RULES:
        if needle in label:
            return category
    return None


def summarize_resources(items: list | None) -> tuple[dict[str, float], dict[str, int]]:
    """Accumulate transfer sizes and request counts per resource category."""
    sizes = {category: 0 for category in RESOURCE_CATEGORIES}
    counts = {category: 0 for category in RESOURCE_CATEGORIES}
    for item in items or []:
        if not isinstance(item, dict):
            continue
        label = item.get("resourceType")
        category = classify_resource_type(label if isinstance(label, str) else None)
        if category is None:
            continue
        sizes[category] += _number(item.get("transferSize"))
        counts[category] += _count(item.get("requestCount"))
    return sizes, counts


def _child(data, key: str) -> dict:
    value = data.get(key) if isinstance(data, dict) else None
    return value if isinstance(value, dict) else {}


def parse_pagespeed_response(api_response: dict) -> PerformanceResult:
    """Convert a PageSpeed Insights v5 response into a PerformanceResult.

    Missing audits default to 0. A missing category score raises
    AnalysisError(MALFORMED_RESPONSE) rather than being reported as 0.
    """
    if not isinstance(api_response, dict):
        raise AnalysisError(ErrorKind.MALFORMED_RESPONSE, "Unexpected response from the analysis service")

    lighthouse = api_response.get("lighthouseResult")
    if not isinstance(lighthouse, dict):
        raise AnalysisError(ErrorKind.MALFORMED_RESPONSE, "No lighthouseResult in API response")

    categories = _child(lighthouse, "categories")
    scores: dict[str, int] = {}
    for cat_key in REQUIRED_CATEGORIES:
        score = _child(categories, cat_key).get("score")
        if _number(score, None) is None:
            raise AnalysisError(
                ErrorKind.MALFORMED_RESPONSE,
                f"API response is missing a valid {cat_key} score",
            )
        scores[f"{cat_key}_score"] = min(max(round(score * 100), 0), 100)

    audits = _child(lighthouse, "audits")
    timings = {
        field_name: _number(_child(audits, audit_id).get("numericValue"))
        for audit_id, field_name in TIMING_AUDITS
    }
    # Speed Index doubles as the headline load time
    timings["total_load_time"] = timings["speed_index"]

    items = _child(_child(audits, RESOURCE_SUMMARY_AUDIT), "details").get("items")
    sizes, counts = summarize_resources(items if isinstance(items, list) else None)

    return PerformanceResult(
        **scores,
        **timings,
        resource_sizes=sizes,
        request_counts=counts,
    )


# ---------------------------------------------------------------------------
# Demo Data
# ---------------------------------------------------------------------------


def generate_mock_result() -> PerformanceResult:
    """Build a plausible, internally consistent result without network access."""
    scores = {
        name: round(random.uniform(low, high))
        for name, (low, high) in MOCK_SCORE_RANGES.items()
    }
    base_load_time = random.uniform(*MOCK_LOAD_TIME_RANGE_MS)
    speed_index = base_load_time * 0.8

    sizes = {
        category: round(1024 * random.uniform(low, high))
        for category, (low, high) in MOCK_SIZE_RANGES_KB.items()
    }
    counts = {
        category: random.randint(low, high)
        for category, (low, high) in MOCK_REQUEST_RANGES.items()
    }

    return PerformanceResult(
        **scores,
        first_contentful_paint=base_load_time * 0.3,
        largest_contentful_paint=base_load_time * 0.7,
        speed_index=speed_index,
        time_to_interactive=base_load_time * 1.2,
        total_load_time=speed_index,
        cumulative_layout_shift=random.random() * MOCK_CLS_MAX,
        first_input_delay=random.uniform(*MOCK_FID_RANGE_MS),
        resource_sizes=sizes,
        request_counts=counts,
    )


# ---------------------------------------------------------------------------
# Analysis Service
# ---------------------------------------------------------------------------


def has_api_key(api_key: str | None) -> bool:
    return bool(api_key and api_key.strip() and api_key.strip() != DEMO_API_KEY)


class PerformanceDataService:
    """Runs a single analysis per call; holds read-only configuration only."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        strategy: str = DEFAULT_STRATEGY,
        categories: tuple[str, ...] = REQUIRED_CATEGORIES,
        timeout: float | None = None,
        verbose: bool = False,
    ):
        if strategy not in VALID_STRATEGIES:
            raise ValueError(f"strategy must be one of {VALID_STRATEGIES}, got {strategy!r}")
        self.api_key = api_key.strip() if has_api_key(api_key) else None
        self.strategy = strategy
        self.categories = tuple(categories)
        self.timeout = timeout
        self.verbose = verbose

    @property
    def demo_mode(self) -> bool:
        return self.api_key is None

    def analyze(self, url: str) -> PerformanceResult:
        """Analyze url and return its metrics, raising AnalysisError on failure."""
        if not validate_url(url):
            raise AnalysisError(ErrorKind.INVALID_INPUT, INVALID_URL_MESSAGE)
        url = url.strip()

        if self.demo_mode:
            if self.verbose:
                print(f"  No API key configured; using demo data for {url}", file=sys.stderr)
            return generate_mock_result()

        api_response = self.fetch(url)
        return parse_pagespeed_response(api_response)

    def fetch(self, url: str) -> dict:
        """Issue the PageSpeed request and return the decoded JSON body."""
        # requests encodes list values as repeated query params
        params: dict[str, str | list[str]] = {
            "url": url,
            "key": self.api_key,
            "category": list(self.categories),
            "strategy": self.strategy,
        }
        if self.verbose:
            print(f"  Fetching {url} ({self.strategy})...", file=sys.stderr)

        try:
            response = requests.get(PAGESPEED_API_URL, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise AnalysisError(ErrorKind.NETWORK_ERROR, NETWORK_ERROR_MESSAGE) from exc

        status = response.status_code
        if not 200 <= status < 300:
            raise _status_error(response)

        try:
            data = response.json()
        except ValueError as exc:
            raise AnalysisError(
                ErrorKind.MALFORMED_RESPONSE,
                "Analysis service returned a response that is not valid JSON",
                status=status,
            ) from exc

        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            detail = data["error"].get("message", "unknown error")
            raise AnalysisError(
                ErrorKind.MALFORMED_RESPONSE,
                f"Analysis service reported an error: {detail}",
                status=status,
            )
        return data


def _status_error(response: requests.Response) -> AnalysisError:
    status = response.status_code
    if status in STATUS_ERRORS:
        kind, message = STATUS_ERRORS[status]
        return AnalysisError(kind, message, status=status)

    message = f"API request failed with status {status}"
    try:
        error_body = response.json()
        detail = error_body.get("error", {}).get("message")
    except (ValueError, AttributeError):
        detail = None
    if detail:
        message = f"{message}: {detail}"
    return AnalysisError(ErrorKind.PROVIDER_ERROR, message, status=status)


# ---------------------------------------------------------------------------
# Config & Profile
# ---------------------------------------------------------------------------


def discover_config_path() -> Path | None:
    """Find the first existing config file in search paths."""
    for search_dir in CONFIG_SEARCH_PATHS:
        for filename in CONFIG_FILENAMES:
            candidate = search_dir / filename
            if candidate.is_file():
                return candidate
    return None


def load_config(config_path: Path | None) -> dict:
    """Parse a TOML config file and return its contents as a dict."""
    if config_path is None:
        return {}
    try:
        with open(config_path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        print(f"Error: malformed config file {config_path}: {exc}", file=sys.stderr)
        sys.exit(1)
    except OSError as exc:
        print(f"Error: cannot read config file {config_path}: {exc}", file=sys.stderr)
        sys.exit(1)


CONFIG_KEYS = ("api_key", "strategy", "output_format", "output_dir", "verbose")


def apply_profile(args: argparse.Namespace, config: dict, profile_name: str | None) -> argparse.Namespace:
    """Fill args from config, lowest to highest priority.

    Built-in defaults < [settings] < [profiles.<name>] < explicit CLI flags.
    The API key finally falls back to the environment.
    """
    settings = config.get("settings", {})
    profile = {}
    if profile_name:
        profiles = config.get("profiles", {})
        if profile_name not in profiles:
            available = ", ".join(profiles) if profiles else "(none)"
            print(
                f"Error: profile '{profile_name}' not found in config. Available: {available}",
                file=sys.stderr,
            )
            sys.exit(1)
        profile = profiles[profile_name]

    explicit = explicit_args(args)
    for key in CONFIG_KEYS:
        if key in explicit:
            continue
        for source in (profile, settings):
            if key in source:
                setattr(args, key, source[key])
                break

    if not getattr(args, "api_key", None):
        for env_var in API_KEY_ENV_VARS:
            env_key = os.environ.get(env_var)
            if env_key:
                args.api_key = env_key
                break

    for key, choices in (("strategy", VALID_STRATEGIES), ("output_format", VALID_OUTPUT_FORMATS)):
        value = getattr(args, key, None)
        if value is not None and value not in choices:
            print(
                f"Error: invalid {key} '{value}' in config. Choose from: {', '.join(choices)}",
                file=sys.stderr,
            )
            sys.exit(1)

    return args


# ---------------------------------------------------------------------------
# CLI Argument Parser
# ---------------------------------------------------------------------------


class TrackingAction(argparse.Action):
    """Store a value and remember that the flag was given explicitly.

    Each flag sets its own ``_explicit_<dest>`` marker, so markers from the
    top-level parser survive subcommand parsing.
    """

    def __call__(self, parser, namespace, values, option_string=None):
        setattr(namespace, self.dest, values)
        setattr(namespace, EXPLICIT_PREFIX + self.dest, True)


def explicit_args(namespace: argparse.Namespace) -> set[str]:
    """Return the dests of flags that were given on the command line."""
    return {
        name[len(EXPLICIT_PREFIX):]
        for name, value in vars(namespace).items()
        if name.startswith(EXPLICIT_PREFIX) and value
    }


class TrackingStoreTrueAction(TrackingAction):
    def __init__(self, option_strings, dest, default=False, required=False, help=None):
        super().__init__(option_strings=option_strings, dest=dest, nargs=0, const=True, default=default, required=required, help=help)

    def __call__(self, parser, namespace, values, option_string=None):
        super().__call__(parser, namespace, True, option_string)


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="performance-analysis",
        description="Website performance analysis via PageSpeed Insights",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--api-key", dest="api_key", action=TrackingAction, default=None, help="Google API key (or set PAGESPEED_API_KEY); without one, demo data is generated")
    parser.add_argument("-c", "--config", dest="config", default=None, help="Path to config TOML file")
    parser.add_argument("-p", "--profile", dest="profile", default=None, help="Named profile from config file")
    parser.add_argument("-v", "--verbose", dest="verbose", action=TrackingStoreTrueAction, default=False, help="Verbose output to stderr")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    analyze_parser = subparsers.add_parser("analyze", help="Analyze one or more URLs")
    analyze_parser.add_argument("urls", nargs="+", help="URLs to analyze (http:// or https://)")
    analyze_parser.add_argument("-s", "--strategy", dest="strategy", action=TrackingAction, default=DEFAULT_STRATEGY, choices=VALID_STRATEGIES, help="Strategy: desktop or mobile")
    analyze_parser.add_argument("--output-format", dest="output_format", action=TrackingAction, default=DEFAULT_OUTPUT_FORMAT, choices=VALID_OUTPUT_FORMATS, help="Output format: table, csv, or json")
    analyze_parser.add_argument("-o", "--output", dest="output", default=None, help="Explicit output file path (csv/json only)")
    analyze_parser.add_argument("--output-dir", dest="output_dir", action=TrackingAction, default=DEFAULT_OUTPUT_DIR, help="Directory for auto-named output files")

    return parser


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def analyze_urls(service: PerformanceDataService, urls: list[str]) -> list[dict]:
    """Analyze each URL independently; failures become error rows."""
    rows = []
    for url in urls:
        row: dict[str, object] = {"url": url.strip(), "error": None, "error_kind": None}
        try:
            row.update(service.analyze(url).to_dict())
        except AnalysisError as exc:
            row["error"] = exc.message
            row["error_kind"] = exc.kind.value
            print(f"  Error: {url}: {exc.message}", file=sys.stderr)
        rows.append(row)
    return rows


def format_bytes(num_bytes: float) -> str:
    value = float(num_bytes)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def _score_indicator(score: int) -> str:
    return "GOOD" if score >= 90 else ("NEEDS WORK" if score >= 50 else "POOR")


def format_terminal_table(rows: list[dict]) -> str:
    """Format result rows as an aligned terminal summary."""
    lines = []
    for row in rows:
        lines.append(f"\n{'=' * 60}")
        lines.append(f"  URL: {row.get('url', '?')}")

        if row.get("error"):
            lines.append(f"  Error: {row['error']}")
            lines.append(f"{'=' * 60}")
            continue
        lines.append(f"{'=' * 60}")

        for label, key in [("Performance", "performance_score"), ("Accessibility", "accessibility_score"), ("SEO", "seo_score")]:
            score = row[key]
            lines.append(f"  {label + ' Score':.<36} {score}/100 ({_score_indicator(score)})")

        lines.append("")
        lines.append("  --- Timings ---")
        timing_display = [
            ("First Contentful Paint", "fcp_ms", "ms"),
            ("Largest Contentful Paint", "lcp_ms", "ms"),
            ("Speed Index", "speed_index_ms", "ms"),
            ("Time to Interactive", "tti_ms", "ms"),
            ("Total Load Time", "total_load_time_ms", "ms"),
            ("Cumulative Layout Shift", "cls", ""),
            ("First Input Delay", "fid_ms", "ms"),
        ]
        for label, key, unit in timing_display:
            suffix = f" {unit}" if unit else ""
            lines.append(f"  {label:.<36} {row[key]}{suffix}")

        lines.append("")
        lines.append("  --- Resources ---")
        for category in RESOURCE_CATEGORIES:
            size = format_bytes(row[f"{category}_bytes"])
            lines.append(f"  {category:.<36} {size} ({row[f'{category}_requests']} requests)")
        lines.append(f"  {'total':.<36} {format_bytes(row['total_size_bytes'])} ({row['total_requests']} requests)")

    return "\n".join(lines)


def generate_output_path(output_dir: str, strategy: str, extension: str) -> Path:
    """Build an auto-named output path: {dir}/{timestamp}-{strategy}.{ext}"""
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    return directory / f"{timestamp}-{strategy}.{extension}"


def output_csv(dataframe: pd.DataFrame, output_path: Path) -> str:
    """Write DataFrame to CSV. Returns the file path."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    dataframe.to_csv(output_path, index=False)
    return str(output_path)


def output_json(dataframe: pd.DataFrame, output_path: Path, strategy: str, demo_mode: bool) -> str:
    """Write DataFrame to JSON wrapped in a metadata envelope. Returns the file path."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    # NaN -> null, NumPy scalars -> plain JSON numbers
    results = json.loads(dataframe.to_json(orient="records"))
    output_data = {
        "metadata": {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "total_urls": int(dataframe["url"].nunique()) if "url" in dataframe.columns else 0,
            "strategy": strategy,
            "mode": "demo" if demo_mode else "live",
            "tool_version": __version__,
        },
        "results": results,
    }
    with open(output_path, "w") as fh:
        json.dump(output_data, fh, indent=2)
    return str(output_path)


# ---------------------------------------------------------------------------
# Subcommand: analyze
# ---------------------------------------------------------------------------


def cmd_analyze(args: argparse.Namespace) -> None:
    """Analyze each URL and print or write the results."""
    service = PerformanceDataService(
        args.api_key,
        strategy=args.strategy,
        verbose=args.verbose,
    )
    if service.demo_mode:
        print("No API key configured; results are demo data, not measurements.", file=sys.stderr)

    rows = analyze_urls(service, args.urls)

    if args.output_format == "table":
        print(format_terminal_table(rows))
    else:
        dataframe = pd.DataFrame(rows)
        extension = args.output_format
        if args.output:
            output_path = Path(args.output)
        else:
            output_path = generate_output_path(args.output_dir, args.strategy, extension)
        if extension == "csv":
            written = output_csv(dataframe, output_path)
        else:
            written = output_json(dataframe, output_path, args.strategy, service.demo_mode)
        print(f"Results written to: {written}", file=sys.stderr)

    failures = sum(1 for row in rows if row["error"])
    if failures:
        print(f"{failures} of {len(rows)} URL(s) failed", file=sys.stderr)
        sys.exit(1)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main() -> None:
    parser = build_argument_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(0)

    config_path = Path(args.config) if args.config else discover_config_path()
    config = load_config(config_path)
    args = apply_profile(args, config, args.profile)

    commands = {
        "analyze": cmd_analyze,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
