"""CLI entry point for the planka-mcp server."""

from __future__ import annotations

import logging
import sys

from planka_mcp.client import PlankaClient
from planka_mcp.config import Settings
from planka_mcp.exceptions import PlankaClientError, PlankaError
from planka_mcp.logging_config import setup_logging
from planka_mcp.operations import projects
from planka_mcp.server import build_server

logger = logging.getLogger("planka_mcp.cli")

# Module docstring for --help
__doc__ = """
planka-mcp - Planka kanban boards as MCP tools

Usage:
    export PLANKA_BASE_URL="https://planka.example.com"
    export PLANKA_AGENT_EMAIL="agent@example.com"
    export PLANKA_AGENT_PASSWORD="..."

    # Optional: the human account added to every new board
    export PLANKA_ADMIN_EMAIL="me@example.com"   # or PLANKA_ADMIN_ID / PLANKA_ADMIN_USERNAME

    # Run the server on stdio (what MCP clients launch)
    planka-mcp

    # Or as a module
    python3 -m planka_mcp

    # Check credentials and connectivity, then exit
    planka-mcp --test-connection

Options:
    -h, --help           Show this help
    -v, --verbose        Debug logging (every request)
    -q, --quiet          Errors only
    --log-level LEVEL    DEBUG, INFO, WARNING or ERROR
    --log-file PATH      Also write logs to PATH
    --no-verify-ssl      Do not verify the Planka TLS certificate
    --test-connection    Log in, list projects and resolve the admin user

Settings are read from the environment, after loading PLANKA_ENV_FILE
(default: .env) without overriding variables that are already set.
"""


def _flag_value(argv: list[str], flag: str) -> str | None:
    if flag in argv:
        idx = argv.index(flag)
        if idx + 1 < len(argv):
            return argv[idx + 1]
    return None


def _test_connection(client: PlankaClient) -> int:
    """Run connection diagnostics; returns the process exit code"""
    logger.info("🔍 Testing connection to Planka at %s...", client.base_url)
    logger.info("   Agent: %s", client.agent_email)
    logger.info("   SSL Verification: %s", "Enabled" if client.verify_ssl else "Disabled")
    logger.info("")

    logger.info("📡 Test 1: Logging in as the agent...")
    try:
        client.get_token()
        logger.info("   ✅ Authenticated")
    except PlankaClientError as e:
        logger.error("   ❌ %s", e)
        logger.error("   Check PLANKA_BASE_URL, PLANKA_AGENT_EMAIL and PLANKA_AGENT_PASSWORD")
        return 1

    logger.info("📡 Test 2: Fetching projects...")
    try:
        found = projects.get_projects(client)
        logger.info("   ✅ Found %d projects", len(found))
        for project in found[:5]:
            logger.info("      - %s (%s)", project.name, project.id)
    except (PlankaError, PlankaClientError) as e:
        logger.error("   ❌ %s", e)
        return 1

    logger.info("📡 Test 3: Resolving the admin user...")
    admin_id = client.admin.resolve()
    if admin_id:
        logger.info("   ✅ Admin user ID: %s", admin_id)
    else:
        logger.warning("   ⚠️  Admin user not configured or not found")
        logger.warning("   New boards will get no human member")

    logger.info("")
    logger.info("✅ All connection tests passed!")
    return 0


def main(argv: list[str] | None = None) -> None:
    argv = sys.argv[1:] if argv is None else argv

    if "--help" in argv or "-h" in argv:
        print(__doc__)
        sys.exit(0)

    log_level = "INFO"
    if "--verbose" in argv or "-v" in argv:
        log_level = "DEBUG"
    elif "--quiet" in argv or "-q" in argv:
        log_level = "ERROR"
    elif "--log-level" in argv:
        log_level = (_flag_value(argv, "--log-level") or log_level).upper()

    setup_logging(log_level, _flag_value(argv, "--log-file"))

    try:
        settings = Settings.from_env()
    except ValueError as e:
        logger.error("❌ Error: %s", e)
        sys.exit(1)

    missing = settings.missing()
    if missing:
        logger.error("❌ Error: Missing required Planka credentials")
        logger.error("\nRequired environment variables:")
        logger.error("  PLANKA_AGENT_EMAIL     - Email or username of the agent account")
        logger.error("  PLANKA_AGENT_PASSWORD  - Password of the agent account")
        logger.error("\nMissing: %s", ", ".join(missing))
        logger.error("\nSet them in your environment or create a .env file")
        sys.exit(1)

    no_verify_ssl = "--no-verify-ssl" in argv or not settings.verify_ssl
    if no_verify_ssl:
        import urllib3

        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        logger.info("🔓 SSL verification disabled")

    client = PlankaClient.from_settings(settings)
    client.verify_ssl = not no_verify_ssl

    if "--test-connection" in argv:
        sys.exit(_test_connection(client))

    logger.info("🚀 Starting planka-mcp for %s", client.base_url)
    build_server(client).run(transport="stdio")


if __name__ == "__main__":
    main()
