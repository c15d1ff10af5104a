"""Allow ``python -m goldify``."""
from .cli import main

if __name__ == "__main__":
    main()
