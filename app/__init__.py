"""
Internship Placement Portal
API gateway for the university internship and dual-training portal.

Architecture:
- Recruiting backend: source of truth (positions, applications, users)
- Gateway (this package): filtering, sorting, geocoding, distances
- Geocoding cache: JSON file, memory or MongoDB
"""

__version__ = "1.0.0"
