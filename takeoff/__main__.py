"""Allow running the engine with python -m takeoff."""

from .cli import main

if __name__ == "__main__":
    main()
