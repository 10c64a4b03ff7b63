"""
chainstore CLI - Redis diagnostics for the blockchain balance service.

Commands:
    chainstore health            # Ping Redis and print a health report
    chainstore health --json     # Same, as JSON
    chainstore validate          # Run the end-to-end setup validation

Configuration is read from REDIS_* environment variables (and a .env file
in the working directory, if present).
"""


def main():
    """Main entry point for the chainstore CLI."""
    from chainstore.cli.app import cli

    cli()


if __name__ == "__main__":
    main()
