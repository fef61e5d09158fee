#!/usr/bin/env python3
"""
Convenience shim to run releasepick from a source checkout.
Usage: python releasepick.py [-c PATH] [-d] [-o LOGFILE] {profiles,select,parse} ...
"""

from releasepick.cli import main


if __name__ == "__main__":
    main()
