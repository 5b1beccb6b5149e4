"""
Pre-geocoded centroids of Hungarian cities.

Looking these up first keeps most map requests away from the remote
geocoder and its rate limits.
"""

from typing import Dict, Optional, Tuple

HUNGARIAN_CITIES: Dict[str, Tuple[float, float]] = {
    "Budapest": (47.4979, 19.0402),
    "Debrecen": (47.5316, 21.6273),
    "Szeged": (46.253, 20.1414),
    "Miskolc": (48.1035, 20.7784),
    "Pécs": (46.0727, 18.232),
    "Győr": (47.6875, 17.6504),
    "Nyíregyháza": (47.9559, 21.7186),
    "Kecskemét": (46.9062, 19.6913),
    "Székesfehérvár": (47.19, 18.4108),
    "Szombathely": (47.2306, 16.6218),
    "Szolnok": (47.1747, 20.1993),
    "Tatabánya": (47.5692, 18.4041),
    "Kaposvár": (46.3594, 17.7967),
    "Érd": (47.3895, 18.9145),
    "Veszprém": (47.0929, 17.9093),
    "Békéscsaba": (46.6761, 21.0896),
    "Zalaegerszeg": (46.84, 16.8444),
    "Sopron": (47.685, 16.5839),
    "Eger": (47.9026, 20.377),
    "Nagykanizsa": (46.453, 16.9908),
    "Dunaújváros": (46.9619, 18.935),
    "Hódmezővásárhely": (46.4181, 20.3294),
    "Salgótarján": (48.0983, 19.8033),
    "Cegléd": (47.1717, 19.8014),
    "Baja": (46.1819, 18.9553),
    "Esztergom": (47.7928, 18.7436),
    "Gyula": (46.65, 21.2833),
    "Vác": (47.7758, 19.1347),
    "Pápa": (47.33, 17.4667),
    "Hajdúböszörmény": (47.6694, 21.5119),
    "Keszthely": (46.7683, 17.25),
    "Orosháza": (46.5667, 20.6667),
    "Tiszakécske": (46.9333, 20.1),
    "Mosonmagyaróvár": (47.8681, 17.2708),
    "Kiskunfélegyháza": (46.7167, 19.85),
    "Komló": (46.19, 18.2556),
    "Siófok": (46.905, 18.0556),
    "Kazincbarcika": (48.25, 20.6333),
    "Szentes": (46.65, 20.2667),
    "Gödöllő": (47.5992, 19.3658),
    "Budaörs": (47.4611, 18.9556),
    "Dunakeszi": (47.6383, 19.1419),
    "Szigetszentmiklós": (47.3469, 19.0406),
    "Vecsés": (47.4089, 19.2811),
    "Nagyatád": (46.2333, 17.35),
    "Hatvan": (47.6667, 19.6833),
    "Jászberény": (47.5, 19.9167),
    "Ózd": (48.2167, 20.2833),
    "Ajka": (47.1, 17.5667),
    "Gyöngyös": (47.7833, 19.9333),
    "Szentendre": (47.6667, 19.0667),
    "Monor": (47.35, 19.45),
    "Dabas": (47.1833, 19.3167),
    "Mezőkövesd": (47.8167, 20.5833),
    "Kiskunhalas": (46.4333, 19.4833),
    "Mátészalka": (47.95, 22.3333),
    "Sárvár": (47.25, 16.9333),
    "Dombóvár": (46.3833, 18.1333),
    "Balassagyarmat": (48.0833, 19.3),
    "Tapolca": (46.8833, 17.4333),
    "Paks": (46.6167, 18.85),
}

_BY_FOLDED_NAME = {name.casefold(): coords for name, coords in HUNGARIAN_CITIES.items()}


def get_city_coordinates(city: str) -> Optional[Tuple[float, float]]:
    """Return (lat, lng) for a known city, exact match first, then case-insensitive."""
    name = (city or "").strip()
    if not name:
        return None
    if name in HUNGARIAN_CITIES:
        return HUNGARIAN_CITIES[name]
    return _BY_FOLDED_NAME.get(name.casefold())
