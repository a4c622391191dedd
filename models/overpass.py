import threading
import time
import requests
from models.constants import OVERPASS_URL, OVERPASS_TIMEOUT, BATHROOM_CACHE_TTL


class OverpassError(Exception):
    pass


class TTLCache:
    """Process-local cache, entries expire ttl seconds after they are set."""

    def __init__(self, ttl=BATHROOM_CACHE_TTL, clock=time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries = {}
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def set(self, key, value, ttl=None):
        with self._lock:
            self._sweep()
            self._entries[key] = (value, self._clock() + (self.ttl if ttl is None else ttl))

    def _sweep(self):
        # caller holds the lock
        now = self._clock()
        expired = [k for k, (_, expires_at) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self):
        with self._lock:
            return len(self._entries)


bathroom_cache = TTLCache()


def bathroom_cache_key(lat, lng, radius):
    # 2 decimal places is ~1km precision
    return f"{lat:.2f},{lng:.2f},{radius}"


def fetch_nearby_bathrooms(lat, lng, radius_meters, url=OVERPASS_URL):
    query = f'[out:json][timeout:{OVERPASS_TIMEOUT}];node["amenity"="toilets"](around:{radius_meters},{lat},{lng});out body;'
    try:
        resp = requests.post(url, data={'data': query}, timeout=OVERPASS_TIMEOUT)
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        raise OverpassError(f"Overpass API error: {e}") from e

    bathrooms = []
    for el in data.get('elements') or []:
        tags = el.get('tags') or {}
        bathrooms.append({
            'id': el.get('id'),
            'lat': el.get('lat'),
            'lon': el.get('lon'),
            'name': tags.get('name'),
            'wheelchair': tags.get('wheelchair'),
            'fee': tags.get('fee'),
            'openingHours': tags.get('opening_hours'),
            'operator': tags.get('operator'),
        })
    return bathrooms


def nearby_bathrooms(lat, lng, radius_meters, url=OVERPASS_URL, ttl=None):
    key = bathroom_cache_key(lat, lng, radius_meters)
    cached = bathroom_cache.get(key)
    if cached is not None:
        return cached
    bathrooms = fetch_nearby_bathrooms(lat, lng, radius_meters, url=url)
    bathroom_cache.set(key, bathrooms, ttl=ttl)
    return bathrooms
