"""Allow `python -m barrel_breaker`."""

from barrel_breaker.cli.commands import main

if __name__ == "__main__":
    main()
