"""Global pytest configuration."""

import os

# Test environment defaults, set before any planora imports read settings
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ["OPENROUTER_API_KEY"] = ""
os.environ.setdefault("FALLBACK_RNG_SEED", "7")
