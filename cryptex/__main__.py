import sys

from cryptex.cli import main

sys.exit(main())
