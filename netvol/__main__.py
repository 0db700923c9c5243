import sys

from netvol.cli import main

sys.exit(main())
