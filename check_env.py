#!/usr/bin/env python3
"""Helper script to check and create the .env file for provider configuration."""

from pathlib import Path

SECRET_KEYS = ("ROUTEWISE_GOOGLE_MAPS_API_KEY",)

TEMPLATE = """# Routing (OSRM). The public demo server is used when unset.
ROUTEWISE_OSRM_BASE_URL=https://router.project-osrm.org
ROUTEWISE_OSRM_PROFILE=driving

# Places (required for scenic stops and foodie packages)
ROUTEWISE_GOOGLE_MAPS_API_KEY=your-google-maps-key-here
ROUTEWISE_RESTAURANT_MIN_RATING=4.0

# Weather hazard feeds (optional, must return {"hazards": [...]})
# ROUTEWISE_HAZARDS_WEATHER_URL=
# ROUTEWISE_HAZARDS_TRAFFIC_URL=

# Remote indoor/outdoor classifier (optional, heuristics are used when unset)
# ROUTEWISE_CLASSIFIER_URL=

# Result cache
ROUTEWISE_CACHE_TTL_SECONDS=300
ROUTEWISE_CACHE_MAX_ENTRIES=500

# API Configuration
ROUTEWISE_API_PREFIX=/api
ROUTEWISE_LOG_LEVEL=INFO
# Comma-separated or JSON array: http://localhost:5173,http://127.0.0.1:5173
# ROUTEWISE_FRONTEND_ALLOWED_ORIGINS=
"""


def _mask(line: str) -> str:
    name, _, value = line.partition("=")
    value = value.strip()
    if name.strip() in SECRET_KEYS and len(value) > 12:
        return f"{name}={value[:6]}...{value[-4:]}"
    return line


def main():
    env_file = Path(__file__).parent / ".env"

    print("=" * 60)
    print("RouteWise Environment Variables Checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        print(f"[MISSING] .env file NOT found at: {env_file}")
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"[OK] Created template .env file at: {env_file}")
        print("     Edit it and set ROUTEWISE_GOOGLE_MAPS_API_KEY before starting the server.")
        return 0

    print(f"[OK] Found .env file at: {env_file}")
    print("-" * 60)
    for line in env_file.read_text(encoding="utf-8").splitlines():
        print(_mask(line))
    print("-" * 60)

    content = env_file.read_text(encoding="utf-8")
    if "ROUTEWISE_GOOGLE_MAPS_API_KEY=" not in content or "your-google-maps-key-here" in content:
        print("[WARN] ROUTEWISE_GOOGLE_MAPS_API_KEY is not set; scenic stops and foodie packages will be disabled")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
