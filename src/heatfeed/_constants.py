"""Internal constants shared across the library."""

from __future__ import annotations

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_PATH = "/heatmap-updates"
DEFAULT_WEBSOCKET_URL = f"ws://localhost:{DEFAULT_PORT}{DEFAULT_PATH}"
DEFAULT_REGION = "gujarat"

TICK_INTERVAL_SECONDS = 3.0
RECONNECT_DELAY_SECONDS = 5.0

# ------------------------------------------------------------------
# Point of interest: Somnath Temple, Veraval
# ------------------------------------------------------------------

SOMNATH_LAT = 20.8883
SOMNATH_LNG = 70.4011

# Degrees; roughly a 1 km box around the center.
CLUSTER_SPREAD_DEG = 0.01
CLUSTER_MIN_POINTS = 5
CLUSTER_MAX_POINTS = 20

INITIAL_INTENSITY = 0.5
INTENSITY_FLOOR = 0.3
INTENSITY_VARIATION = 0.05
SPIKE_PROBABILITY = 0.1
SPIKE_AMOUNT = 0.2
BACKGROUND_VARIATION = 0.1
BACKGROUND_FLOOR = 0.1
CROWD_SCALE = 1000

# Background activity across Gujarat (lat, lng, intensity).
BASE_POINTS: tuple[tuple[float, float, float], ...] = (
    (23.0225, 72.5714, 0.7),  # Ahmedabad
    (22.3072, 70.8022, 0.6),  # Jamnagar
    (21.1702, 72.8311, 0.7),  # Surat
    (23.1815, 69.6692, 0.5),  # Kutch
    (22.4707, 70.0583, 0.6),  # Rajkot
    (23.2156, 72.6369, 0.7),  # Gandhinagar
    (21.7645, 72.1519, 0.6),  # Vadodara
    (23.0333, 72.6167, 0.7),  # Kalol
    (22.7, 72.8667, 0.5),  # Mehsana
)

# Shown by viewers whenever no live connection is available.
FALLBACK_POINTS: tuple[tuple[float, float, float], ...] = (
    (23.0225, 72.5714, 1.0),  # Ahmedabad
    (22.3072, 70.8022, 0.8),  # Jamnagar
    (21.1702, 72.8311, 0.9),  # Surat
    (23.1815, 69.6692, 0.7),  # Kutch
    (22.4707, 70.0583, 0.8),  # Rajkot
    (23.2156, 72.6369, 0.9),  # Gandhinagar
    (22.3039, 70.8022, 0.7),  # Porbandar
    (21.7645, 72.1519, 0.8),  # Vadodara
    (23.8481, 72.1293, 0.7),  # Patan
    (24.5854, 72.7023, 0.6),  # Palanpur
    (22.3094, 73.1812, 0.7),  # Anand
    (22.6015, 72.9697, 0.8),  # Bharuch
    (23.1667, 70.1333, 0.6),  # Bhuj
    (22.3, 73.2, 0.7),  # Nadiad
    (23.0333, 72.6167, 0.9),  # Kalol
    (22.7, 72.8667, 0.7),  # Mehsana
    (21.5167, 70.45, 0.6),  # Junagadh
    (22.5667, 72.9167, 0.7),  # Modasa
    (23.0833, 72.6333, 0.8),  # Sanand
    (22.45, 72.8, 0.7),  # Kheda
    (23.0225, 72.5714, 1.0),  # Ahmedabad center
    (23.0325, 72.5814, 0.9),
    (23.0125, 72.5614, 0.9),
    (23.0425, 72.5914, 0.8),
    (23.0025, 72.5514, 0.8),
    (22.3072, 70.8022, 0.8),  # Jamnagar
    (21.1702, 72.8311, 0.9),  # Surat
    (21.1802, 72.8411, 0.8),
    (21.1602, 72.8211, 0.8),
    (21.1902, 72.8511, 0.7),
    (21.1502, 72.8111, 0.7),
    (20.8883, 70.4011, 0.9),  # Somnath Mandir
    (20.8983, 70.4111, 0.8),
    (20.8783, 70.3911, 0.8),
)

# ------------------------------------------------------------------
# Map presentation
# ------------------------------------------------------------------

MAP_CENTER: tuple[float, float] = (23.5, 72.5)
MAP_ZOOM = 7

TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
TILE_ATTRIBUTION = '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
TILE_MAX_ZOOM = 19

HEAT_RADIUS = 60
HEAT_BLUR = 35
HEAT_MAX_ZOOM = 18
HEAT_GRADIENT: dict[float, str] = {
    0.0: "#0000ff",
    0.1: "#00ffff",
    0.3: "#00ff00",
    0.5: "#ffff00",
    0.7: "#ff8800",
    0.9: "#ff4400",
    1.0: "#ff0000",
}

CITY_MARKERS: tuple[tuple[str, float, float], ...] = (
    ("New York", 40.7128, -74.006),
    ("London", 51.5074, -0.1278),
    ("Tokyo", 35.6762, 139.6503),
    ("Sydney", -33.8688, 151.2093),
    ("Paris", 48.8566, 2.3522),
    ("Dubai", 25.2048, 55.2708),
    ("São Paulo", -23.5505, -46.6333),
    ("Mumbai", 19.076, 72.8777),
    ("Gujarat", 23.0225, 72.5714),
)

SOMNATH_POPUP = (
    "<b>Somnath Mandir</b><br>Somnath Temple, Veraval<br>"
    "Coordinates: 20.8883° N, 70.4011° E<br><br>"
    "One of the 12 Jyotirlinga shrines of Lord Shiva"
)
