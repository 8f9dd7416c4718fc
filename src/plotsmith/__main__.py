"""Allow ``python -m plotsmith``."""

from plotsmith.ui.cli import main


if __name__ == "__main__":
    main()
