import sys

from webpmux.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
