import sys

from indiana_hash.cli import main

sys.exit(main())
