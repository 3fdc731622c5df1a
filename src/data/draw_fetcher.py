"""
Data fetcher for the Svenska Spel Stryktipset API
Handles draw requests with a short in-memory cache and rate limiting
"""

import requests
import time
from datetime import datetime, timedelta
from typing import Dict, List, Any, Optional

from config import (
    SVENSKA_SPEL_BASE_URL,
    REQUEST_TIMEOUT_SECONDS,
    DRAW_CACHE_SECONDS,
    MIN_SECONDS_BETWEEN_REQUESTS,
    OUTCOMES,
)
from utils.utils import setup_logging, generate_cache_key, iso_week_number


logger = setup_logging(__name__)

DRAW_STATE_OPEN = "Open"


class SvenskaSpelFetcher:
    """
    Fetches Stryktipset draws and results from Svenska Spel

    Odds/distribution data is for display only and is never stored with a room.
    """

    def __init__(self, base_url: str = SVENSKA_SPEL_BASE_URL,
                 cache_seconds: int = DRAW_CACHE_SECONDS,
                 session: Optional[requests.Session] = None):
        """
        Initialize the fetcher

        Args:
            base_url: Stryktipset draw API root
            cache_seconds: How long a response is reused
            session: requests session (a new one by default)
        """
        self.base_url = base_url.rstrip('/')
        self.cache_seconds = cache_seconds
        self.session = session or requests.Session()
        self._cache: Dict[str, Dict[str, Any]] = {}

        # Rate limiting
        self.request_times = []

        logger.info("SvenskaSpelFetcher initialized")

    def _check_rate_limit(self):
        now = time.time()

        if self.request_times:
            time_since_last = now - self.request_times[-1]
            if time_since_last < MIN_SECONDS_BETWEEN_REQUESTS:
                time.sleep(MIN_SECONDS_BETWEEN_REQUESTS - time_since_last)

        self.request_times = self.request_times[-99:] + [time.time()]

    def _load_from_cache(self, cache_key: str) -> Optional[Dict[str, Any]]:
        """Return cached data if it hasn't expired"""
        entry = self._cache.get(cache_key)
        if entry is None:
            return None

        expiry_time = entry['fetched_at'] + timedelta(seconds=self.cache_seconds)
        if datetime.now() < expiry_time:
            logger.debug(f"Loading from cache: {cache_key}")
            return entry['data']

        del self._cache[cache_key]
        return None

    def _save_to_cache(self, cache_key: str, data: Dict[str, Any]):
        self._cache[cache_key] = {'fetched_at': datetime.now(), 'data': data}

    def _make_request(self, endpoint: str, use_cache: bool = True) -> Optional[Dict[str, Any]]:
        """
        Make an API request with caching

        Args:
            endpoint: API endpoint (e.g., '/draws')
            use_cache: Reuse a recent response if there is one

        Returns:
            Parsed JSON, or None if the request failed
        """
        cache_key = generate_cache_key(endpoint, {})

        if use_cache:
            cached_data = self._load_from_cache(cache_key)
            if cached_data is not None:
                return cached_data

        self._check_rate_limit()

        url = f"{self.base_url}{endpoint}"
        logger.info(f"Making API request: {endpoint}")

        try:
            response = self.session.get(url, timeout=REQUEST_TIMEOUT_SECONDS)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Request failed: {e}")
            return None
        except ValueError as e:
            logger.error(f"Invalid JSON from {endpoint}: {e}")
            return None

        self._save_to_cache(cache_key, data)
        return data

    def get_draws(self) -> List[Dict[str, Any]]:
        """
        Get all Stryktipset draws Svenska Spel currently lists
        """
        data = self._make_request('/draws')

        if data and data.get('draws'):
            return data['draws']
        return []

    def get_open_draw(self) -> Optional[Dict[str, Any]]:
        """Raw data of the first draw that is open for betting"""
        for draw in self.get_draws():
            if draw.get('drawState') == DRAW_STATE_OPEN:
                return draw
        return None

    def is_draw_open(self) -> bool:
        """
        Check if there is an open draw right now

        Always asks the API, a cached answer could let a ticket in after close.
        """
        data = self._make_request('/draws', use_cache=False)
        if not data or not data.get('draws'):
            return False
        return any(draw.get('drawState') == DRAW_STATE_OPEN for draw in data['draws'])

    def get_current_draw(self) -> Optional[Dict[str, Any]]:
        """
        Get the current/upcoming draw with its matches

        Returns:
            {'draw_number', 'week_number', 'reg_close_time', 'draw_state',
             'matches': [...]} or None when no draw is open
        """
        draw = self.get_open_draw()
        if draw is None:
            logger.warning("No open Stryktipset draw found")
            return None

        return parse_draw(draw)

    def get_forecast(self, draw_number: int) -> Optional[Dict[str, Any]]:
        """
        Get the forecast/live result data for a draw

        Args:
            draw_number: Svenska Spel draw number
        """
        logger.info(f"Fetching forecast for draw {draw_number}")
        return self._make_request(f'/draws/forecast/{draw_number}')

    def get_draw_results(self, draw_number: int) -> List[Dict[str, Any]]:
        """
        Get live results for a draw

        Returns:
            [{'event_number': int, 'outcome': '1'/'X'/'2' or None, ...}]
        """
        forecast = self.get_forecast(draw_number)
        if not forecast or not forecast.get('forecastResult'):
            return []

        results = forecast['forecastResult'].get('drawResults') or []
        return [parse_draw_result(r) for r in results]


def parse_distribution(event: Dict[str, Any]) -> Optional[Dict[str, str]]:
    """
    Get the public bet distribution for a draw event

    Prefers 'svenskaFolket', falls back to 'betMetrics'.
    """
    folket = event.get('svenskaFolket')
    if folket:
        return {
            'one': folket.get('one'),
            'x': folket.get('x'),
            'two': folket.get('two'),
        }

    values = (event.get('betMetrics') or {}).get('values') or []
    by_outcome = {v.get('outcome'): v for v in values}
    if all(o in by_outcome for o in OUTCOMES):
        return {
            'one': by_outcome['1']['distribution']['distribution'],
            'x': by_outcome['X']['distribution']['distribution'],
            'two': by_outcome['2']['distribution']['distribution'],
        }

    return None


def parse_draw(draw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert a raw draw into the shape used for creating rooms
    """
    matches = []

    for event in draw.get('drawEvents', []):
        if event.get('cancelled'):
            continue

        participants = (event.get('match') or {}).get('participants') or []
        home = next((p.get('name') for p in participants if p.get('type') == 'home'), '')
        away = next((p.get('name') for p in participants if p.get('type') == 'away'), '')

        matches.append({
            'id': str(event.get('eventNumber')),
            'event_number': event.get('eventNumber'),
            'description': event.get('eventDescription', ''),
            'home': home,
            'away': away,
            'match_start': (event.get('match') or {}).get('matchStart'),
            'distribution': parse_distribution(event),
        })

    matches.sort(key=lambda m: m['event_number'] or 0)

    return {
        'draw_number': draw.get('drawNumber'),
        'week_number': iso_week_number(draw.get('regCloseTime')),
        'reg_close_time': draw.get('regCloseTime'),
        'draw_state': draw.get('drawState'),
        'matches': matches,
    }


def parse_draw_result(result: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize one entry of forecastResult.drawResults"""
    outcome = result.get('outcome')
    return {
        'event_number': result.get('eventNumber'),
        'outcome': outcome if outcome in OUTCOMES else None,
        'home': result.get('home'),
        'away': result.get('away'),
        'score': result.get('score'),
        'match_status': result.get('matchStatus'),
    }
