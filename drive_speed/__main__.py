import sys

from drive_speed.cli import main

if __name__ == "__main__":
    sys.exit(main())
