"""Detailed statistics tool - Entry point."""

from dotenv import load_dotenv

from comparison_stats.cli import app

# Load environment variables from .env file
load_dotenv()

if __name__ == "__main__":
    app()
