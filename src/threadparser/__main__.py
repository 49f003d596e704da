"""Entry point for running the thread parser as a module.

Usage:
    python -m threadparser parse thread.txt
    python -m threadparser --help
"""

from dotenv import load_dotenv

load_dotenv()  # Load .env before any other imports that need env vars

from threadparser.cli import main  # noqa: E402

if __name__ == "__main__":
    main()
