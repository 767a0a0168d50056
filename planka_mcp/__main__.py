"""Allow ``python -m planka_mcp``."""

from planka_mcp.cli import main

if __name__ == "__main__":
    main()
