"""
Vercel Serverless Function wrapper for the Repo Roulette app
"""
import sys
from pathlib import Path

# Add backend to Python path
backend_path = Path(__file__).parent.parent / "backend"
sys.path.insert(0, str(backend_path))

from mangum import Mangum

from repo_roulette.main import app

# Vercel's Python runtime calls handler(event, context); Mangum adapts ASGI to that
mangum_handler = Mangum(app, lifespan="off")


def handler(event, context=None):
    """Vercel serverless function handler"""
    return mangum_handler(event, context)
