"""
Main entry point for moviemath.

Loads movie data from CSV files, runs PCA (and optionally k-means) on a
selection of movies, and prints the result as JSON. With --serve, starts the
HTTP server instead.
"""

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional

from moviemath.analysis.dataset import DatasetError, MovieDataset
from moviemath.analysis.pipeline import run_analysis, to_serializable
from moviemath.components.config import ConfigManager, load_config_file
from moviemath.components.server import Server

logger = logging.getLogger(__name__)


def setup_logging(level: str = 'INFO') -> None:
    """
    Set up logging.

    Args:
        level: Logging level
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler()
        ]
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description='Movie metrics PCA and k-means analysis')

    parser.add_argument(
        '--data',
        action='append',
        default=[],
        metavar='FILE[:YEAR]',
        help='CSV file of movies, optionally tagged with its release year (repeatable)'
    )

    parser.add_argument(
        '--year',
        default='all',
        help="Only analyze movies from this year ('all' for every year)"
    )

    parser.add_argument('--genre', default='all', help="Only analyze this genre")

    parser.add_argument('--studio', default='all', help="Only analyze this lead studio")

    parser.add_argument(
        '--features',
        help='Comma-separated feature columns (defaults to the configured features)'
    )

    parser.add_argument(
        '-k', '--clusters',
        type=int,
        default=None,
        help='Number of k-means clusters (defaults to the configured k; 0 disables clustering)'
    )

    parser.add_argument('--seed', type=int, help='Random seed for reproducible results')

    parser.add_argument(
        '--config',
        help='Path to configuration file'
    )

    parser.add_argument(
        '--log-level',
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level (defaults to the configured level)'
    )

    parser.add_argument('--port', type=int, help='Server port')

    parser.add_argument('--host', help='Server host')

    parser.add_argument(
        '--summary',
        action='store_true',
        help='Print chart summaries of the selected movies instead of running PCA'
    )

    parser.add_argument(
        '--serve',
        action='store_true',
        help='Start the HTTP server instead of running a single analysis'
    )

    return parser.parse_args(argv)


def parse_sources(values: List[str]) -> Dict[str, Optional[int]]:
    """
    Parse FILE[:YEAR] data arguments.

    Args:
        values: Data arguments

    Returns:
        Mapping of path -> year (None when not given)
    """
    sources = {}
    for value in values:
        path, sep, year = value.rpartition(':')
        if sep and year.isdigit():
            sources[path] = int(year)
        else:
            sources[value] = None
    return sources


def parse_year(value: str):
    """Years are integers in the data; 'all' stays a string."""
    return int(value) if value.isdigit() else value


def summarize(dataset: MovieDataset, movies: List[Dict], year) -> Dict:
    """
    Chart summaries for a selection of movies.

    Args:
        dataset: Loaded dataset
        movies: Selected movies
        year: Selected year, or 'all'

    Returns:
        Statistics, genre counts, studio metrics and yearly profitability
    """
    return {
        'statistics': dataset.statistics(movies),
        'genres': dataset.genre_distribution(movies),
        'studios': dataset.studio_metrics(movies),
        'yearly_profitability': dataset.yearly_profitability(None if year == 'all' else [year]),
    }


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.
    """
    # Parse arguments
    args = parse_args(argv)

    # Create overrides from arguments
    overrides = {}

    # Load configuration from file if provided
    if args.config:
        overrides.update(load_config_file(args.config))

    # Override with command line arguments
    if args.port:
        overrides.setdefault('server', {})['port'] = args.port

    if args.host:
        overrides.setdefault('server', {})['host'] = args.host

    if args.seed is not None:
        overrides.setdefault('kmeans', {})['seed'] = args.seed

    if args.log_level:
        overrides.setdefault('logging', {})['level'] = args.log_level.lower()

    # Initialize configuration
    config = ConfigManager.get_config(overrides)

    # Set up logging
    setup_logging(config.get('logging.level', 'warn'))

    if args.serve:
        Server(config).run()
        return 0

    if not args.data:
        logger.error("No data files given (use --data)")
        return 2

    try:
        dataset = MovieDataset.load_csv(parse_sources(args.data))
    except DatasetError as e:
        logger.error(str(e))
        return 1

    year = parse_year(args.year)
    movies = dataset.select(year, args.genre, args.studio)

    if args.summary:
        json.dump(summarize(dataset, movies, year), sys.stdout, indent=2)
        sys.stdout.write('\n')
        return 0

    features = [f.strip() for f in args.features.split(',')] if args.features else None

    result = run_analysis(movies, features, k=args.clusters, config=config, year=year)

    json.dump(to_serializable(result), sys.stdout, indent=2)
    sys.stdout.write('\n')
    return 0


if __name__ == '__main__':
    sys.exit(main())
