#!/usr/bin/env python3
"""datebisect - find when a behavior changed, by date."""

from datebisect.cli import main

if __name__ == "__main__":
    main()
