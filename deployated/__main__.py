import sys

from deployated.main import main

sys.exit(main())
