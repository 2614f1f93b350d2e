"""Allow ``python -m vertex_setup``."""

from vertex_setup.cli import main

if __name__ == "__main__":
    main()
