"""
Movie dataset handling for moviemath.

A MovieDataset owns the movie records of one session and provides the
filters and summary statistics the charts are built from. Records are plain
dicts so they can be fed to the PCA engine directly.
"""

import logging
from collections import Counter
import pandas as pd
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from moviemath.components.config import DEFAULT_FEATURES
from moviemath.utils.general import distinct, to_number

logger = logging.getLogger(__name__)

# Source column -> analysis column
NUMERIC_COLUMNS = {
    'Profitability': 'Profitability',
    'Budget': 'Budget (million $)',
    'Domestic Gross': 'Domestic Gross (million $)',
    'Foreign Gross': 'Foreign Gross (million $)',
    'Worldwide Gross': 'Worldwide Gross (million $)',
    'Rotten Tomatoes': 'Rotten Tomatoes %',
    'Audience Score': 'Audience score %',
}

REQUIRED_FIELDS = [
    'Film', 'Year', 'Budget (million $)',
    'Domestic Gross (million $)', 'Foreign Gross (million $)'
]

DEFAULT_PCA_FEATURES = list(DEFAULT_FEATURES)

ALL = 'all'


class DatasetError(ValueError):
    """Raised when no movie data could be loaded."""


def normalize_movie(row: Mapping[str, Any], year: Optional[int] = None) -> Dict[str, Any]:
    """
    Normalize one raw spreadsheet row into a movie record.

    Numeric source columns are coerced to floats (0 when not numeric) and
    stored under their analysis names.

    Args:
        row: Raw row
        year: Release year to attach, if known

    Returns:
        Movie record
    """
    movie = {k: v for k, v in row.items() if not (isinstance(v, float) and pd.isna(v))}

    if year is not None:
        movie['Year'] = year

    for source, target in NUMERIC_COLUMNS.items():
        movie[target] = to_number(row.get(source, row.get(target)))

    return movie


class MovieDataset:
    """
    The movie records of one analysis session.
    """

    def __init__(self, movies: Optional[Sequence[Mapping[str, Any]]] = None):
        """
        Initialize a dataset.

        Args:
            movies: Normalized movie records
        """
        self._movies = [dict(m) for m in (movies or [])]

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, year: Optional[int] = None) -> 'MovieDataset':
        """
        Build a dataset from a DataFrame of raw rows.

        Args:
            df: Raw rows, one movie per row
            year: Release year for every row, if not present in the data

        Returns:
            New dataset
        """
        movies = [normalize_movie(row, year) for row in df.to_dict('records')]
        dataset = cls(movies)
        dataset.check_fields()
        return dataset

    @classmethod
    def load_csv(cls, sources: Union[Sequence[str], Mapping[str, Optional[int]]]) -> 'MovieDataset':
        """
        Load movies from CSV files.

        Files that cannot be read or contain no rows are logged and skipped.

        Args:
            sources: Paths, or a mapping of path -> release year

        Returns:
            New dataset

        Raises:
            DatasetError: if no file could be loaded
        """
        if not isinstance(sources, Mapping):
            sources = {path: None for path in sources}

        movies = []
        loaded = 0

        for path, year in sources.items():
            try:
                df = pd.read_csv(path)
            except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
                logger.warning(f"Failed to load {path}: {e}")
                continue

            if df.empty:
                logger.warning(f"No records in {path}")
                continue

            logger.info(f"Loaded {len(df)} records from {path}")
            movies.extend(normalize_movie(row, year) for row in df.to_dict('records'))
            loaded += 1

        if loaded == 0:
            raise DatasetError("No movie data could be loaded")

        dataset = cls(movies)
        dataset.check_fields()
        logger.info(f"Dataset loaded with {len(dataset)} movies")
        return dataset

    def check_fields(self) -> List[str]:
        """
        Check the first record for the fields the charts rely on.

        Returns:
            Missing field names (also logged as a warning)
        """
        if not self._movies:
            return []

        sample = self._movies[0]
        missing = [field for field in REQUIRED_FIELDS if field not in sample]
        if missing:
            logger.warning(f"Dataset is missing fields: {', '.join(missing)}")
        return missing

    @property
    def movies(self) -> List[Dict[str, Any]]:
        """All movie records."""
        return list(self._movies)

    def _filter(self, field: str, value: Any) -> List[Dict[str, Any]]:
        if value == ALL:
            return self.movies
        return [m for m in self._movies if m.get(field) == value]

    def by_year(self, year: Any) -> List[Dict[str, Any]]:
        """Movies released in a year, or all movies for 'all'."""
        return self._filter('Year', year)

    def by_genre(self, genre: Any) -> List[Dict[str, Any]]:
        """Movies of a genre, or all movies for 'all'."""
        return self._filter('Genre', genre)

    def by_studio(self, studio: Any) -> List[Dict[str, Any]]:
        """Movies from a lead studio, or all movies for 'all'."""
        return self._filter('Lead Studio', studio)

    def select(self, year: Any = ALL, genre: Any = ALL, studio: Any = ALL) -> List[Dict[str, Any]]:
        """
        Movies matching a year, genre and lead studio at once.

        Args:
            year: Release year, or 'all'
            genre: Genre, or 'all'
            studio: Lead studio, or 'all'

        Returns:
            Matching movies in dataset order
        """
        criteria = [(f, v) for f, v in (('Year', year), ('Genre', genre), ('Lead Studio', studio))
                    if v != ALL]
        return [dict(m) for m in self._movies
                if all(m.get(f) == v for f, v in criteria)]

    def years(self) -> List[Any]:
        return distinct(m.get('Year') for m in self._movies)

    def genres(self) -> List[Any]:
        return distinct(m.get('Genre') for m in self._movies)

    def studios(self) -> List[Any]:
        return distinct(m.get('Lead Studio') for m in self._movies)

    def statistics(self, movies: Optional[Sequence[Mapping[str, Any]]] = None) -> Dict[str, float]:
        """
        Calculate summary statistics over a set of movies.

        Args:
            movies: Movies to summarize (defaults to the whole dataset)

        Returns:
            Totals of budget and gross columns, and average profitability and
            Rotten Tomatoes score
        """
        movies = self._movies if movies is None else movies

        def total(field):
            return sum(to_number(m.get(field)) for m in movies)

        def average(field):
            return total(field) / len(movies) if movies else 0.0

        return {
            'total_budget': total('Budget (million $)'),
            'total_domestic_gross': total('Domestic Gross (million $)'),
            'total_foreign_gross': total('Foreign Gross (million $)'),
            'total_worldwide_gross': total('Worldwide Gross (million $)'),
            'average_profitability': average('Profitability'),
            'average_rotten_tomatoes': average('Rotten Tomatoes %'),
        }

    def genre_distribution(self, movies: Optional[Sequence[Mapping[str, Any]]] = None) -> List[Dict[str, Any]]:
        """
        Count movies per genre, most common first.

        Movies without a genre are skipped. Genres with equal counts keep the
        order in which they first appear.

        Args:
            movies: Movies to count (defaults to the whole dataset)

        Returns:
            List of {'genre', 'count'} dictionaries
        """
        movies = self._movies if movies is None else movies
        counts = Counter(m.get('Genre') for m in movies if m.get('Genre'))
        return [{'genre': genre, 'count': count} for genre, count in counts.most_common()]

    def yearly_profitability(self, years: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        """
        Summarize profitability per release year.

        Args:
            years: Years to summarize (defaults to every year, ascending).
                Years without movies are left out.

        Returns:
            List of dictionaries with 'year', 'average_profitability' and the
            'highest' and 'lowest' films as {'film', 'profitability'}
        """
        if years is None:
            years = sorted((y for y in self.years() if y is not None), key=to_number)

        summary = []
        for year in years:
            movies = [m for m in self._movies if m.get('Year') == year]
            if not movies:
                continue
            ranked = sorted(movies, key=lambda m: to_number(m.get('Profitability')), reverse=True)
            profits = [to_number(m.get('Profitability')) for m in movies]
            summary.append({
                'year': year,
                'average_profitability': sum(profits) / len(profits),
                'highest': {'film': ranked[0].get('Film'),
                            'profitability': to_number(ranked[0].get('Profitability'))},
                'lowest': {'film': ranked[-1].get('Film'),
                           'profitability': to_number(ranked[-1].get('Profitability'))},
            })
        return summary

    def studio_metrics(self,
                       movies: Optional[Sequence[Mapping[str, Any]]] = None,
                       top: int = 5) -> List[Dict[str, Any]]:
        """
        Compare the lead studios with the most movies.

        Budget control is one minus the average budget-to-gross ratio; a movie
        with no budget or no gross contributes a ratio of 0.

        Args:
            movies: Movies to compare (defaults to the whole dataset)
            top: Number of studios to keep

        Returns:
            List of dictionaries with 'studio', 'movies',
            'average_profitability', 'max_profitability',
            'average_rotten_tomatoes' and 'budget_control'
        """
        movies = self._movies if movies is None else movies
        counts = Counter(m.get('Lead Studio') for m in movies if m.get('Lead Studio'))

        metrics = []
        for studio, count in counts.most_common(top):
            group = [m for m in movies if m.get('Lead Studio') == studio]
            profits = [to_number(m.get('Profitability')) for m in group]
            scores = [to_number(m.get('Rotten Tomatoes %')) for m in group]

            ratios = []
            for m in group:
                budget = to_number(m.get('Budget (million $)'))
                gross = (to_number(m.get('Domestic Gross (million $)'))
                         + to_number(m.get('Foreign Gross (million $)')))
                ratios.append(budget / gross if budget > 0 and gross > 0 else 0.0)

            metrics.append({
                'studio': studio,
                'movies': count,
                'average_profitability': sum(profits) / count,
                'max_profitability': max(profits),
                'average_rotten_tomatoes': sum(scores) / count,
                'budget_control': 1 - sum(ratios) / count,
            })
        return metrics

    def __len__(self) -> int:
        return len(self._movies)

    def __repr__(self) -> str:
        return f"MovieDataset(movies={len(self._movies)})"
