"""Command-line entry point of the DTM elevation profiler."""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from dem.cache import RasterCache
from dem.decoder import decode_geotiff
from domain.models import ProfileRequest
from services.profile_builder import (
    ProfileBuilder,
    profile_to_records,
    summarize_profile,
    summary_to_record,
)
from settings import load_settings
from shared.constants import LOG_FORMAT, ProfileOutputFormat, default_output_format
from shared.diagnostics import log_memory_usage
from shared.errors import ProfilerError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PROFILER_ERROR = 1
EXIT_INVALID_INPUT = 2

# Decoded DTMs shared by every run() in this process
_raster_cache: RasterCache | None = None


def get_raster_cache(max_entries: int) -> RasterCache:
    """Process-wide raster cache, created on first use."""
    global _raster_cache
    if _raster_cache is None:
        _raster_cache = RasterCache(max_entries=max_entries)
    return _raster_cache


def raster_cache_key(dtm_path: Path, crs: str | None) -> str:
    """Cache key; the modification time makes an edited file decode again."""
    resolved = dtm_path.resolve()
    mtime = resolved.stat().st_mtime_ns if resolved.exists() else 0
    return f'{resolved}|{mtime}|{crs or ""}'


def setup_logging(log_file: str | Path | None = None, level: int = logging.INFO) -> None:
    """Configure root logging; records go to stderr so stdout stays clean for JSON."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(log_path), encoding='utf-8'))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='dtm-profiler',
        description='Elevation profile with local min/max along a path over a GeoTIFF DTM',
    )
    parser.add_argument('--dtm', required=True, help='GeoTIFF digital terrain model')
    parser.add_argument(
        '--path',
        required=True,
        help='JSON file: [[lon, lat(, height)], ...] or {"coordinates": [...]}',
    )
    parser.add_argument('--radius', type=float, default=None, help='Local min/max radius, m')
    parser.add_argument('--interval', type=float, default=None, help='Sampling interval, m')
    parser.add_argument(
        '--nominal-height',
        type=float,
        default=None,
        help='Flight height AGL for vertices without their own, m',
    )
    parser.add_argument(
        '--safety-height',
        type=float,
        default=None,
        help='Add a safety line this far above the local maximum, m',
    )
    parser.add_argument(
        '--resolution-height',
        type=float,
        default=None,
        help='Add a resolution line this far above the local minimum, m',
    )
    parser.add_argument('--crs', default=None, help='DTM CRS when the file has none, e.g. EPSG:32636')
    parser.add_argument('--config', default=None, help='Engine settings TOML')
    parser.add_argument('--output', default=None, help='Output file (stdout when omitted)')
    parser.add_argument(
        '--format',
        choices=[f.value for f in ProfileOutputFormat],
        default=default_output_format().value,
        help='Output format',
    )
    parser.add_argument('--log-file', default=None, help='Also write the log to this file')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    return parser


def read_path_file(path: str | Path) -> list:
    """Path vertices from JSON: a bare coordinate list or an object with ``coordinates``."""
    data = json.loads(Path(path).read_text(encoding='utf-8'))
    if isinstance(data, dict):
        data = data.get('coordinates')
    if not isinstance(data, list):
        msg = f'{path}: expected a list of coordinates'
        raise ValueError(msg)
    return data


def render_output(
    records: list[dict],
    summary: dict,
    fmt: ProfileOutputFormat,
) -> str:
    if fmt is ProfileOutputFormat.JSON_LINES:
        lines = [json.dumps(r) for r in records]
        lines.append(json.dumps({'summary': summary}))
        return '\n'.join(lines) + '\n'
    return json.dumps({'profile': records, 'summary': summary}, indent=2) + '\n'


def run(args: argparse.Namespace) -> int:
    settings = load_settings(args.config)
    request = ProfileRequest(
        coordinates=read_path_file(args.path),
        radius_m=settings.radius_m if args.radius is None else args.radius,
        sampling_interval_m=settings.sampling_interval_m if args.interval is None else args.interval,
        nominal_flight_height_m=(
            settings.nominal_flight_height_m if args.nominal_height is None else args.nominal_height
        ),
    )

    dtm_path = Path(args.dtm).expanduser()
    cache = get_raster_cache(settings.raster_cache_size)
    grid = cache.get_or_load(
        raster_cache_key(dtm_path, args.crs),
        lambda: decode_geotiff(dtm_path, crs_override=args.crs),
    )
    log_memory_usage('after DTM decode')

    builder = ProfileBuilder(settings=settings)
    profile = builder.build_from_request(request, grid)
    clearance = {
        'safety_height_m': settings.safety_height_m if args.safety_height is None else args.safety_height,
        'resolution_height_m': (
            settings.resolution_height_m if args.resolution_height is None else args.resolution_height
        ),
    }
    summary = summarize_profile(profile, **clearance)
    text = render_output(
        profile_to_records(profile, **clearance),
        summary_to_record(summary),
        ProfileOutputFormat(args.format),
    )

    if args.output:
        out = Path(args.output)
        out.write_text(text, encoding='utf-8')
        logger.info('Profile written to %s (%d samples)', out, summary.sample_count)
    else:
        sys.stdout.write(text)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_file, logging.DEBUG if args.verbose else logging.INFO)

    try:
        return run(args)
    except ProfilerError as e:
        logger.error('Profile failed: %s', e)
        return EXIT_PROFILER_ERROR
    except (ValidationError, ValueError, FileNotFoundError) as e:
        logger.error('Invalid input: %s', e)
        return EXIT_INVALID_INPUT


if __name__ == '__main__':
    sys.exit(main())
